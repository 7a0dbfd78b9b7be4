#!/usr/bin/env python3
"""
SlideForge Command Line Interface
=================================

Offline deck generation and inspection.

Author: Olivier Vitrac, PhD, HDR | olivier.vitrac@adservio.fr | Adservio | 2026-10-19

Usage:
    slideforge generate    Build a .pptx from a topic (LLM, notes file or demo content)
    slideforge themes      List available themes
    slideforge config      Show current configuration
"""

import argparse
import shutil
import sys
import time
from pathlib import Path

from slideforge_core.config import find_config_file, get_config, load_config
from slideforge_core.deck.demo_content import professional_subtitle
from slideforge_core.deck.layout import layout
from slideforge_core.deck.models import DeckMetadata, GenerationRequest
from slideforge_core.deck.normalize import normalize
from slideforge_core.deck.serializer import write_deck
from slideforge_core.deck.themes import list_themes, resolve_theme
from slideforge_core.errors import SlideForgeError
from slideforge_core.llm_backends import create_backend_from_config
from slideforge_core.logging_utils import mask_secrets, setup_logging
from slideforge_core.orchestrator import GenerationOrchestrator
from slideforge_core.version import PRODUCER, VERSION_FULL


# =============================================================================
# ANSI Colors
# =============================================================================

class Colors:
    """ANSI color codes for terminal output."""
    RED = '\033[0;31m'
    GREEN = '\033[0;32m'
    YELLOW = '\033[1;33m'
    CYAN = '\033[0;36m'
    BOLD = '\033[1m'
    NC = '\033[0m'

    @classmethod
    def disable(cls):
        cls.RED = cls.GREEN = cls.YELLOW = cls.CYAN = cls.BOLD = cls.NC = ''


def print_ok(msg: str) -> None:
    print(f"{Colors.GREEN}✓{Colors.NC} {msg}")


def print_warn(msg: str) -> None:
    print(f"{Colors.YELLOW}⚠{Colors.NC} {msg}")


def print_error(msg: str) -> None:
    print(f"{Colors.RED}✗{Colors.NC} {msg}", file=sys.stderr)


def print_header(msg: str) -> None:
    print(f"\n{Colors.BOLD}{Colors.CYAN}{msg}{Colors.NC}")
    print("=" * len(msg))


def _load(args: argparse.Namespace):
    return load_config(Path(args.config)) if getattr(args, "config", None) else get_config()


# =============================================================================
# Commands
# =============================================================================

def cmd_generate(args: argparse.Namespace) -> int:
    """Generate a deck into --output."""
    config = _load(args)
    setup_logging(args.log_level or config.logging.level)

    payload = {
        "topic": args.topic,
        "audience": args.audience,
        "style": args.style,
        "slides": args.slides,
        "presentationType": args.type,
        "additionalInfo": args.info,
        "theme": args.theme,
    }
    output = Path(args.output or f"ai-presentation-{int(time.time() * 1000)}.pptx")

    try:
        request = GenerationRequest.from_payload(
            payload,
            min_slides=config.deck.min_slides,
            max_slides=config.deck.max_slides,
            default_slides=config.deck.default_slides,
        )

        if args.input:
            # Notes file: normalize locally, no model call
            text = Path(args.input).read_text(encoding="utf-8")
            records = normalize(text, request)
            theme = resolve_theme(request.theme or config.deck.default_theme, request.style)
            metadata = DeckMetadata(
                title=records[0].title,
                subject=professional_subtitle(request),
                author=config.deck.author,
                company=config.deck.company,
                producer=PRODUCER,
            )
            write_deck(layout(records, theme, deck_title=metadata.title), metadata, output)
            print_ok(f"{len(records)} slides from {args.input} → {output}")
            return 0

        llm = None if args.demo else create_backend_from_config(config.llm)
        orchestrator = GenerationOrchestrator(config, llm=llm)
        result = orchestrator.generate(request)
        output.parent.mkdir(parents=True, exist_ok=True)
        shutil.move(str(result.path), str(output))
    except SlideForgeError as e:
        print_error(f"{e.error}: {mask_secrets(e.details or '')}")
        if e.suggestion:
            print(f"  {e.suggestion}")
        return 1
    except OSError as e:
        print_error(str(e))
        return 1

    if result.demo_mode:
        print_warn("No model answered, demo content used")
    print_ok(f"{result.slide_count} slides ({result.model or 'demo'}) → {output}")
    return 0


def cmd_themes(args: argparse.Namespace) -> int:
    """List available themes."""
    print_header("SlideForge Themes")
    for t in list_themes(include_legacy=args.all):
        tag = " (legacy)" if t["legacy"] else ""
        print(f"  {Colors.BOLD}{t['key']:<14}{Colors.NC} {t['name']:<16} "
              f"primary #{t['primary']}  accent #{t['accent']}{tag}")
    return 0


def cmd_config(args: argparse.Namespace) -> int:
    """Show current configuration (secrets omitted)."""
    print_header("SlideForge Configuration")
    path = Path(args.config) if args.config else find_config_file()
    if path:
        print_ok(f"Config file: {path}")
    else:
        print_warn("No slideforge.yaml found, using defaults and environment")
    config = _load(args)

    sections = {
        "LLM": {
            "Backend": config.llm.backend,
            "Models": ", ".join(config.llm.models),
            "Credentials": "configured" if config.llm.has_credentials else "missing (demo mode)",
        },
        "Services": {
            "Design service": "configured" if config.design_service.client_id else "demo",
            "Placeholder editor": "configured" if config.editor_service.api_key else "not configured",
        },
        "Server": {
            "Address": f"{config.server.host}:{config.server.port}",
            "Output dir": config.server.output_dir,
        },
        "Deck": {
            "Slides": f"{config.deck.min_slides}-{config.deck.max_slides} (default {config.deck.default_slides})",
            "Theme": config.deck.default_theme,
        },
    }
    for section, items in sections.items():
        print(f"{Colors.BOLD}{section}:{Colors.NC}")
        for key, value in items.items():
            print(f"  {key}: {value}")
        print()
    return 0


# =============================================================================
# Main
# =============================================================================

def main(argv=None) -> int:
    """Main CLI entry point."""
    if not sys.stdout.isatty():
        Colors.disable()

    parser = argparse.ArgumentParser(
        prog="slideforge",
        description=f"SlideForge {VERSION_FULL} - AI presentation generator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  slideforge generate --topic "Digital Transformation Strategy" --slides 8
  slideforge generate --topic "Q3 Review" --input notes.txt --theme ai-data
  slideforge generate --topic "Onboarding" --demo -o onboarding.pptx
  slideforge themes --all
        """
    )
    parser.add_argument("-c", "--config", help="Path to slideforge.yaml")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # generate
    sub = subparsers.add_parser("generate", help="Generate a presentation")
    sub.add_argument("-t", "--topic", required=True, help="Presentation topic")
    sub.add_argument("-i", "--input", help="Notes file to normalize instead of calling a model")
    sub.add_argument("-o", "--output", help="Output .pptx path")
    sub.add_argument("-n", "--slides", type=int, help="Target slide count (clamped)")
    sub.add_argument("--theme", default="", help="Theme key (see 'slideforge themes')")
    sub.add_argument("--audience", default="", help="Target audience")
    sub.add_argument("--style", default="", help="Style hint")
    sub.add_argument("--type", default="", help="Presentation type (business, educational, ...)")
    sub.add_argument("--info", default="", help="Additional context")
    sub.add_argument("--demo", action="store_true", help="Use demo content, no model call")
    sub.add_argument("--log-level", help="Logging level (default from config)")
    sub.set_defaults(func=cmd_generate)

    # themes
    sub = subparsers.add_parser("themes", help="List themes")
    sub.add_argument("-a", "--all", action="store_true", help="Include legacy themes")
    sub.set_defaults(func=cmd_themes)

    # config
    sub = subparsers.add_parser("config", help="Show current configuration")
    sub.set_defaults(func=cmd_config)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
