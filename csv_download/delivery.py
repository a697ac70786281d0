"""
Delivery of serialized text as a downloadable artifact.

The adapter is the single containment point for failures: it validates the
input, reports lifecycle events through caller hooks, and never lets an
exception escape `DownloadButton.handle_download`.
"""

from __future__ import annotations

import hashlib
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Sequence, Union

from . import rules
from .errors import EmptyInputError, GenerationFailure
from .models import CsvOptions, ReportItem, TriggerView
from .serialize import serialize_with_report

logger = logging.getLogger(__name__)


def _sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


@dataclass
class DownloadHooks:
    on_start: Optional[Callable[[], None]] = None
    on_complete: Optional[Callable[[], None]] = None
    on_error: Optional[Callable[[Exception], None]] = None

    def notify_start(self) -> None:
        if self.on_start:
            self.on_start()

    def notify_complete(self) -> None:
        if self.on_complete:
            self.on_complete()

    def notify_error(self, error: Exception) -> None:
        if self.on_error:
            self.on_error(error)


@dataclass(frozen=True)
class DownloadArtifact:
    filename: str
    content: bytes
    encoding: str = rules.TARGET_ENCODING
    media_type: str = rules.MEDIA_TYPE

    @property
    def sha256(self) -> str:
        return _sha256_hex(self.content)


def build_artifact(text: str, filename: str, include_bom: bool = False) -> DownloadArtifact:
    encoding = rules.BOM_ENCODING if include_bom else rules.TARGET_ENCODING
    return DownloadArtifact(filename=filename, content=text.encode(encoding), encoding=encoding)


class DownloadSink(Protocol):
    """Platform save mechanism: a transient reference is acquired, triggered, released."""

    def acquire(self, artifact: DownloadArtifact) -> str: ...

    def trigger(self, reference: str, filename: str) -> None: ...

    def release(self, reference: str) -> None: ...


class InMemorySink:
    """Keeps triggered artifacts in memory; used by the HTTP layer and tests."""

    def __init__(self) -> None:
        self._live: Dict[str, DownloadArtifact] = {}
        self.saved: List[DownloadArtifact] = []

    @property
    def live_references(self) -> int:
        return len(self._live)

    def acquire(self, artifact: DownloadArtifact) -> str:
        reference = f"memory://{uuid.uuid4().hex}"
        self._live[reference] = artifact
        return reference

    def trigger(self, reference: str, filename: str) -> None:
        artifact = self._live[reference]
        if artifact.filename != filename:
            artifact = DownloadArtifact(
                filename=filename,
                content=artifact.content,
                encoding=artifact.encoding,
                media_type=artifact.media_type,
            )
        self.saved.append(artifact)

    def release(self, reference: str) -> None:
        self._live.pop(reference, None)


def deliver(artifact: DownloadArtifact, sink: DownloadSink) -> None:
    reference = sink.acquire(artifact)
    try:
        sink.trigger(reference, artifact.filename)
    finally:
        sink.release(reference)
    logger.debug("delivered %s (%d bytes)", artifact.filename, len(artifact.content))


@dataclass(frozen=True)
class DefaultTrigger:
    label: str = rules.DEFAULT_TRIGGER_LABEL


@dataclass(frozen=True)
class CustomTrigger:
    handle: Any


Trigger = Union[DefaultTrigger, CustomTrigger]


@dataclass
class DownloadButton:
    records: Sequence[Mapping[str, Any]]
    filename: str = rules.DEFAULT_FILENAME
    options: CsvOptions = field(default_factory=CsvOptions)
    hooks: DownloadHooks = field(default_factory=DownloadHooks)
    trigger: Trigger = field(default_factory=DefaultTrigger)
    empty_data_message: str = rules.EMPTY_DATA_MESSAGE
    include_bom: bool = False
    warnings: List[ReportItem] = field(default_factory=list, init=False)

    def render(self) -> TriggerView:
        if not self.records:
            return TriggerView(kind="placeholder", message=self.empty_data_message)
        if isinstance(self.trigger, CustomTrigger):
            return TriggerView(kind="custom", handle=self.trigger.handle)
        return TriggerView(kind="default", label=self.trigger.label)

    def handle_download(self, sink: DownloadSink) -> Optional[DownloadArtifact]:
        if not self.records:
            logger.info("download of %s refused: no records", self.filename)
            self._report(EmptyInputError(rules.EMPTY_INPUT_DETAIL))
            return None

        try:
            self.hooks.notify_start()
            result = serialize_with_report(self.records, self.options)
            self.warnings = result.warnings
            if not result.text:
                raise GenerationFailure(rules.GENERATION_FAILED_DETAIL)

            artifact = build_artifact(result.text, self.filename, include_bom=self.include_bom)
            deliver(artifact, sink)
            self.hooks.notify_complete()
            return artifact
        except Exception as exc:
            logger.warning("download of %s failed: %s", self.filename, exc)
            self._report(exc)
            return None

    def _report(self, error: Exception) -> None:
        try:
            self.hooks.notify_error(error)
        except Exception:
            logger.exception("error hook for %s raised", self.filename)
