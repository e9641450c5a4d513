# models.py
"""
Plain data objects exchanged between the build pipeline and the CSP plugin.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

logger = logging.getLogger(__name__)


class PageState(Enum):
    """Lifecycle of one page inside the plugin."""
    UNPROCESSED = "unprocessed"
    POLICY_RESOLVED = "policy_resolved"
    VALIDATED = "validated"
    AUGMENTED = "augmented"
    SERIALIZED = "serialized"
    HOOK_INVOKED = "hook_invoked"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class PageData:
    """Metadata of a generated page. ``csp_plugin`` holds the per-page overrides."""
    filename: str
    csp_plugin: Dict[str, Any] = field(default_factory=dict)
    public_path: str = ''
    # URL as written in src/href -> SRI string computed by the build
    integrity: Dict[str, str] = field(default_factory=dict)
    chunks: Optional[List[str]] = None
    xhtml: Optional[bool] = None
    title: str = ''


@dataclass
class AttributeMutation:
    tag: str
    attribute: str
    value: str
    reference: Optional[str] = None


@dataclass
class PageResult:
    filename: str
    state: PageState = PageState.UNPROCESSED
    policy: Optional[str] = None
    mutations: List[AttributeMutation] = field(default_factory=list)
    error: Optional[Exception] = None

    def transition(self, state: PageState) -> None:
        logger.debug(f"{self.filename}: {self.state.value} -> {state.value}")
        self.state = state

    @property
    def succeeded(self) -> bool:
        return self.state == PageState.HOOK_INVOKED


@dataclass
class BuildContext:
    """
    Error channel and emitted files of one build.

    Files are always kept in ``files``; when ``output_dir`` is set they are
    written to disk as well.
    """
    output_dir: Optional[Path] = None
    errors: List[Exception] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    files: Dict[str, Union[str, bytes]] = field(default_factory=dict)
    results: Dict[str, PageResult] = field(default_factory=dict)

    def emit_asset(self, name: str, content: Union[str, bytes]) -> None:
        self.files[name] = content
        if self.output_dir is not None:
            target = Path(self.output_dir) / name
            target.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                target.write_bytes(content)
            else:
                target.write_text(content, encoding='utf-8')
        logger.debug(f"Emitted {name} ({len(content)} bytes)")

    def report_error(self, error: Exception) -> None:
        self.errors.append(error)

    @property
    def failed(self) -> bool:
        return bool(self.errors)
