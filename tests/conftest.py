"""
Pytest Configuration and Fixtures

Author: Olivier Vitrac, PhD, HDR | olivier.vitrac@adservio.fr | Adservio | 2026-10-19
"""

import sys
import tempfile
from pathlib import Path
from typing import Dict, Generator, List, Union

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from slideforge_core.config import SlideForgeConfig
from slideforge_core.deck.models import GenerationRequest
from slideforge_core.llm_backends import BaseLLM, SovereigntyStatus

ENV_KEYS = (
    "OPENAI_API_KEY",
    "ANTHROPIC_API_KEY",
    "CANVA_CLIENT_ID",
    "CANVA_CLIENT_SECRET",
    "CLOUDMERSIVE_API_KEY",
    "SLIDEFORGE_LLM_BACKEND",
    "SLIDEFORGE_LLM_MODELS",
    "SLIDEFORGE_OUTPUT_DIR",
    "SLIDEFORGE_LOG_LEVEL",
    "PORT",
)


class ScriptedLLM(BaseLLM):
    """
    Offline backend answering from a script: model name → text or exception.

    Models missing from the script answer with ``default``.
    """

    def __init__(self, script: Dict[str, Union[str, Exception]], model: str = "gpt-4",
                 default: str = ""):
        self.model = model
        self.script = script
        self.default = default
        self.calls: List[str] = []

    @property
    def sovereignty(self) -> SovereigntyStatus:
        return SovereigntyStatus.SOVEREIGN

    def generate(self, system_prompt, history):
        self.calls.append(self.model)
        answer = self.script.get(self.model, self.default)
        if isinstance(answer, Exception):
            raise answer
        return answer


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep real keys and overrides out of every test."""
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def config(temp_dir: Path) -> SlideForgeConfig:
    """Default configuration writing into a temporary output directory."""
    cfg = SlideForgeConfig()
    cfg.server.output_dir = str(temp_dir / "generated")
    cfg.logging.log_dir = str(temp_dir / "logs")
    cfg.rate_limit.enabled = False
    cfg.llm.models = ["gpt-4", "gpt-4o-mini", "gpt-3.5-turbo"]
    return cfg


@pytest.fixture
def request_10() -> GenerationRequest:
    """Typical form submission."""
    return GenerationRequest(
        topic="Digital Transformation Strategy",
        audience="Executive team",
        style="Professional and modern",
        slides=10,
        presentation_type="business",
    )


@pytest.fixture
def sample_text() -> str:
    """Free-form model output with agenda keywords and three slides."""
    return """
Agenda:
- Introduction to digital transformation
- Key challenges in legacy systems
- Implementation roadmap and next steps

Market Landscape
- Cloud adoption keeps accelerating across sectors.
- Customers expect seamless digital experiences.

Technology Stack:
- Modern platforms reduce integration costs.
- Data pipelines enable real-time decisions.
- Security is built in from the start.

Change Management
- Leadership alignment drives adoption.
"""
