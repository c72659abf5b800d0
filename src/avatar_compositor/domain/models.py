"""Domain models for the avatar composite pipeline."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictStr
from pydantic import ValidationError as PydanticValidationError

from avatar_compositor.domain.exceptions import InvalidLocator, ValidationError

OUTPUT_CONTENT_TYPE = "video/mp4"
DEFAULT_SCHEME = "gs"


@dataclass(frozen=True)
class RemoteLocator:
    """A remote object, ``<scheme>://<store>/<path>``."""

    scheme: str
    store: str
    path: str

    def __post_init__(self):
        if not self.store or not self.path:
            raise InvalidLocator(
                f"Locator needs both store and path: store={self.store!r} path={self.path!r}"
            )

    @classmethod
    def parse(cls, text: str, default_scheme: str = DEFAULT_SCHEME) -> "RemoteLocator":
        """
        Parse ``scheme://store/path/...``.

        The scheme prefix is stripped and the remainder split on the first
        ``/``. A string without a scheme is read as ``store/path`` under
        ``default_scheme``.

        Raises:
            InvalidLocator: If store or path is empty after parsing
        """
        if not isinstance(text, str):
            raise InvalidLocator(f"Invalid locator: {text!r}")

        scheme, sep, rest = text.partition("://")
        if not sep:
            scheme, rest = default_scheme, text

        store, _, path = rest.partition("/")
        if not scheme or not store or not path:
            raise InvalidLocator(f"Invalid locator: {text}")

        return cls(scheme=scheme, store=store, path=path)

    @property
    def uri(self) -> str:
        return f"{self.scheme}://{self.store}/{self.path}"

    def __str__(self) -> str:
        return self.uri


class CompositeRequest(BaseModel):
    """The five required fields of a composite request."""

    model_config = ConfigDict(frozen=True, extra="ignore", str_strip_whitespace=True)

    background_video: StrictStr = Field(alias="backgroundVideoGcsPath", min_length=1)
    avatar_video: StrictStr = Field(alias="avatarVideoGcsPath", min_length=1)
    audio: StrictStr = Field(alias="audioGcsPath", min_length=1)
    output_bucket: StrictStr = Field(alias="outputGcsBucket", min_length=1)
    output_file_name: StrictStr = Field(alias="outputGcsFileName", min_length=1)

    @classmethod
    def required_fields(cls) -> list:
        return [f.alias for f in cls.model_fields.values()]

    @classmethod
    def from_payload(cls, payload: Any) -> "CompositeRequest":
        """
        Build a request from a decoded JSON body.

        A field counts as missing when it is absent, null, not a string or
        blank.

        Raises:
            ValidationError: If the payload is not an object or any field is missing
        """
        if not isinstance(payload, dict):
            raise ValidationError(
                "Missing required GCS paths or output parameters.",
                missing_fields=cls.required_fields(),
            )

        try:
            return cls.model_validate(payload)
        except PydanticValidationError as e:
            invalid = {err["loc"][0] for err in e.errors() if err["loc"]}
            missing = [name for name in cls.required_fields() if name in invalid]
            raise ValidationError(
                f"Missing required GCS paths or output parameters: {', '.join(missing)}",
                missing_fields=missing,
            ) from e


class JobStage(str, Enum):
    """Orchestrator states. ``FAILED`` is reachable from every non-terminal stage."""

    VALIDATING = "validating"
    DOWNLOADING_INPUTS = "downloading_inputs"
    TRANSCODING = "transcoding"
    UPLOADING_OUTPUT = "uploading_output"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class InputSet:
    """The three local inputs of one transcode, in ffmpeg input order."""

    background: Path
    avatar: Path
    audio: Path

    def as_list(self) -> list:
        return [self.background, self.avatar, self.audio]


@dataclass
class CompositeJob:
    """One request's unit of work. Owns its scratch directory exclusively."""

    job_id: str
    request: CompositeRequest
    scratch_dir: Path
    stage: JobStage = JobStage.VALIDATING
    failed_stage: Optional[JobStage] = None

    @property
    def local_background(self) -> Path:
        return self.scratch_dir / "background_in.mp4"

    @property
    def local_avatar(self) -> Path:
        return self.scratch_dir / "avatar_in.mp4"

    @property
    def local_audio(self) -> Path:
        return self.scratch_dir / "audio_in.aac"

    @property
    def local_output(self) -> Path:
        return self.scratch_dir / "output.mp4"

    @property
    def inputs(self) -> InputSet:
        return InputSet(
            background=self.local_background,
            avatar=self.local_avatar,
            audio=self.local_audio,
        )

    def advance(self, stage: JobStage) -> None:
        self.stage = stage

    def fail(self) -> None:
        self.failed_stage = self.stage
        self.stage = JobStage.FAILED


@dataclass(frozen=True)
class TranscodeEvent:
    """Base class for events emitted by one transcode invocation."""

    @property
    def terminal(self) -> bool:
        return False


@dataclass(frozen=True)
class TranscodeStarted(TranscodeEvent):
    command_line: str


@dataclass(frozen=True)
class TranscodeProgress(TranscodeEvent):
    percent: float


@dataclass(frozen=True)
class TranscodeDiagnostic(TranscodeEvent):
    line: str


@dataclass(frozen=True)
class TranscodeCompleted(TranscodeEvent):
    output_path: Path

    @property
    def terminal(self) -> bool:
        return True


@dataclass(frozen=True)
class TranscodeFailed(TranscodeEvent):
    message: str
    stdout: Optional[str] = None
    stderr: Optional[str] = None

    @property
    def terminal(self) -> bool:
        return True


@dataclass
class JobResponse:
    """Status code and JSON body handed back to the caller."""

    status_code: int
    body: Dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status_code == 200
