"""
Logging configuration for ficta

Pipeline milestones are logged in a dual format, a structured part for grepping
and a human-readable part:

    PIPELINE:COMPLETION:SUCCESS:path=notes.txt:time=1.204 | ✅ PIPELINE completion (path: notes.txt, in 1.204s)
"""

import logging
import sys
from typing import Optional

import structlog


def log_structured(component: str, action: str, status: str, **kwargs) -> str:
    """
    Create structured log message with dual format

    Format: COMPONENT:ACTION:STATUS:key=value:key=value | Human description
    """
    structured_parts = [component.upper(), action.upper(), status.upper()]

    if kwargs:
        structured_parts.extend(f"{k}={v}" for k, v in kwargs.items() if v is not None)

    structured = ":".join(structured_parts)

    status_emoji = {
        "SUCCESS": "✅", "ERROR": "❌", "WARNING": "⚠️",
        "START": "🔄", "COMPLETE": "✅", "FAIL": "❌",
        "SKIP": "🔇", "DETECTED": "📝",
    }.get(status.upper(), "ℹ️")

    human_parts = [f"{status_emoji} {component}", action.lower()]

    context_parts = []
    for k, v in kwargs.items():
        if v is None:
            continue
        if k == "time":
            context_parts.append(f"in {v}s")
        elif k == "error":
            context_parts.append(f"error: {v}")
        else:
            context_parts.append(f"{k}: {v}")
    if context_parts:
        human_parts.append(f"({', '.join(context_parts)})")

    return f"{structured} | {' '.join(human_parts)}"


class ComponentLogger:
    """Base class for component-specific structured loggers"""

    def __init__(self, component_name: str):
        self.component = component_name
        self.logger = logging.getLogger(f"structured.{component_name}")

    def _log(self, level: str, action: str, status: str, **kwargs):
        kwargs.pop("component", None)
        message = log_structured(self.component, action, status, **kwargs)
        getattr(self.logger, level.lower())(message)

    def info(self, action: str, status: str, **kwargs):
        self._log("INFO", action, status, **kwargs)

    def error(self, action: str, status: str, **kwargs):
        self._log("ERROR", action, status, **kwargs)

    def warning(self, action: str, status: str, **kwargs):
        self._log("WARNING", action, status, **kwargs)

    def debug(self, action: str, status: str, **kwargs):
        self._log("DEBUG", action, status, **kwargs)


class PipelineLogger(ComponentLogger):
    """Structured logger for the file change pipeline"""

    def __init__(self):
        super().__init__("PIPELINE")

    def change_detected(self, path: str):
        self.info("CHANGE", "DETECTED", path=path)

    def change_suppressed(self, path: str):
        self.debug("CHANGE", "SKIP", path=path, reason="self-write")

    def directive_defaulted(self, path: str, error: str):
        self.warning("DIRECTIVE", "WARNING", path=path, error=error, using="defaults")

    def completion_start(self, path: str, model: str, max_tokens: int, temperature: float, n: int):
        self.info("COMPLETION", "START", path=path, model=model, max_tokens=max_tokens,
                  temperature=temperature, n=n)

    def completion_success(self, path: str, time: float, prompt_tokens: int,
                           completion_tokens: int, total_tokens: int):
        self.info("COMPLETION", "SUCCESS", path=path, time=round(time, 3), prompt=prompt_tokens,
                  completion=completion_tokens, total=total_tokens)

    def completion_empty(self, path: str, message: str):
        self.warning("COMPLETION", "WARNING", path=path, error=message)

    def rewrite_success(self, path: str, size: int, backup: Optional[str] = None):
        self.info("REWRITE", "SUCCESS", path=path, size=size, backup=backup or None)

    def pipeline_error(self, path: str, stage: str, error: str):
        self.error(stage, "ERROR", path=path, error=error)


pipeline_log = PipelineLogger()


def setup_logging(level: str = "INFO") -> None:
    """Configure stdlib logging and structlog for the process"""

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True,
    )

    # Set specific log levels for noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)
    logging.getLogger("watchdog").setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.debug("🔧 Logging configured successfully")
