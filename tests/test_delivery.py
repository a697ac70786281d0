import pytest

from csv_download.delivery import (
    CustomTrigger,
    DefaultTrigger,
    DownloadArtifact,
    DownloadButton,
    DownloadHooks,
    InMemorySink,
    build_artifact,
    deliver,
)
from csv_download.errors import EmptyInputError, GenerationFailure, SchemaMismatchError
from csv_download.models import CsvOptions


class RecordingHooks:
    def __init__(self):
        self.events = []
        self.errors = []

    def hooks(self) -> DownloadHooks:
        return DownloadHooks(
            on_start=lambda: self.events.append("start"),
            on_complete=lambda: self.events.append("complete"),
            on_error=self._error,
        )

    def _error(self, error):
        self.events.append("error")
        self.errors.append(error)


class FailingSink(InMemorySink):
    def trigger(self, reference, filename):
        raise OSError("save dialog unavailable")


def test_successful_download_reports_start_then_complete():
    rec = RecordingHooks()
    sink = InMemorySink()
    button = DownloadButton(records=[{"a": 1}], filename="out.csv", hooks=rec.hooks())

    artifact = button.handle_download(sink)

    assert rec.events == ["start", "complete"]
    assert artifact is not None
    assert sink.saved == [artifact]
    assert artifact.content == b'a\n"1"'
    assert artifact.filename == "out.csv"
    assert sink.live_references == 0


def test_empty_input_reports_error_and_delivers_nothing():
    rec = RecordingHooks()
    sink = InMemorySink()
    button = DownloadButton(records=[], hooks=rec.hooks())

    assert button.handle_download(sink) is None
    assert rec.events == ["error"]
    assert isinstance(rec.errors[0], EmptyInputError)
    assert str(rec.errors[0]) == "No data available"
    assert sink.saved == []


def test_transformer_failure_is_contained_and_reported():
    def boom(value, field, record):
        raise ValueError("bad cell")

    rec = RecordingHooks()
    sink = InMemorySink()
    button = DownloadButton(records=[{"a": 1}], options=CsvOptions(value_transformer=boom), hooks=rec.hooks())

    assert button.handle_download(sink) is None
    assert rec.events == ["start", "error"]
    assert isinstance(rec.errors[0], ValueError)
    assert sink.saved == []


def test_empty_generation_is_reported_as_failure(monkeypatch):
    from csv_download import delivery
    from csv_download.serialize import SerializationResult

    monkeypatch.setattr(delivery, "serialize_with_report", lambda records, options: SerializationResult(text=""))
    rec = RecordingHooks()
    sink = InMemorySink()

    assert DownloadButton(records=[{"a": 1}], hooks=rec.hooks()).handle_download(sink) is None
    assert isinstance(rec.errors[0], GenerationFailure)
    assert sink.saved == []


def test_schema_mismatch_in_strict_mode_is_reported():
    rec = RecordingHooks()
    button = DownloadButton(
        records=[{"a": 1}, {"b": 2}],
        options=CsvOptions(schema_policy="strict"),
        hooks=rec.hooks(),
    )

    assert button.handle_download(InMemorySink()) is None
    assert isinstance(rec.errors[0], SchemaMismatchError)


def test_lenient_download_keeps_schema_warnings():
    button = DownloadButton(records=[{"a": 1}, {}])
    button.handle_download(InMemorySink())
    assert [w.issue for w in button.warnings] == ["missing_field"]


def test_missing_hooks_are_optional():
    assert DownloadButton(records=[]).handle_download(InMemorySink()) is None
    assert DownloadButton(records=[{"a": 1}]).handle_download(InMemorySink()) is not None


def test_transient_reference_released_when_trigger_fails():
    sink = FailingSink()
    artifact = build_artifact("a\n1", "x.csv")

    with pytest.raises(OSError):
        deliver(artifact, sink)
    assert sink.live_references == 0


def test_trigger_failure_is_contained_by_button():
    rec = RecordingHooks()
    sink = FailingSink()

    assert DownloadButton(records=[{"a": 1}], hooks=rec.hooks()).handle_download(sink) is None
    assert rec.events == ["start", "error"]
    assert sink.live_references == 0


def test_build_artifact_encodings():
    plain = build_artifact("é", "x.csv")
    assert plain.content == "é".encode("utf-8")
    assert plain.media_type == "text/csv;charset=utf-8"

    bom = build_artifact("é", "x.csv", include_bom=True)
    assert bom.content.startswith(b"\xef\xbb\xbf")
    assert bom.encoding == "utf-8-sig"


def test_artifact_sha256_is_stable():
    a = DownloadArtifact(filename="a.csv", content=b"a,b")
    b = DownloadArtifact(filename="b.csv", content=b"a,b")
    assert a.sha256 == b.sha256
    assert len(a.sha256) == 64


def test_render_placeholder_when_no_records():
    view = DownloadButton(records=[], empty_data_message="Nothing here").render()
    assert view.kind == "placeholder"
    assert view.message == "Nothing here"


def test_render_default_placeholder_message():
    assert DownloadButton(records=[]).render().message == "No data available."


def test_render_default_and_custom_triggers():
    assert DownloadButton(records=[{"a": 1}]).render().label == "Download CSV"
    assert DownloadButton(records=[{"a": 1}], trigger=DefaultTrigger(label="Get it")).render().label == "Get it"

    view = DownloadButton(records=[{"a": 1}], trigger=CustomTrigger(handle="icon-button")).render()
    assert view.kind == "custom"
    assert view.handle == "icon-button"


def test_raising_error_hook_does_not_escape():
    def bad_hook(error):
        raise RuntimeError("hook broke")

    hooks = DownloadHooks(on_error=bad_hook)
    boom = CsvOptions(value_transformer=lambda v, f, r: 1 / 0)

    assert DownloadButton(records=[], hooks=hooks).handle_download(InMemorySink()) is None
    assert DownloadButton(records=[{"a": 1}], options=boom, hooks=hooks).handle_download(InMemorySink()) is None
