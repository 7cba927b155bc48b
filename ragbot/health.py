import os
from dataclasses import dataclass
from typing import Dict

from ragbot.config import Settings

OK = "OK"
MISSING = "MISSING"


@dataclass
class HealthReport:
    status: str
    checks: Dict[str, str]

    @property
    def healthy(self) -> bool:
        return self.status == "healthy"


class HealthReporter:
    """Presence checks only: the PDF on disk and both API keys. No network calls."""

    def __init__(self, config: Settings):
        self.config = config

    def report(self) -> HealthReport:
        checks = {
            "pdfFile": OK if os.path.isfile(self.config.PDF_PATH) else MISSING,
            "huggingfaceKey": OK if self.config.HUGGINGFACE_API_KEY else MISSING,
            "openrouterKey": OK if self.config.OPENROUTER_API_KEY else MISSING,
        }
        status = "healthy" if all(value == OK for value in checks.values()) else "degraded"
        return HealthReport(status=status, checks=checks)
