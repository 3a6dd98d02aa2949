"""OCR providers that turn a statement screenshot into plain text.

Three backends are supported:

- Google Cloud Vision ``images:annotate`` with ``TEXT_DETECTION``
  (``GOOGLE_VISION_API_KEY``).
- OCR.space ``parse/image`` (``OCR_SPACE_API_KEY``).
- OpenAI vision through the Responses API (``OPENAI_API_KEY``).

The two REST backends are thin ``urllib.request`` clients: one non-streaming
POST, JSON validated with pydantic, HTTP error bodies surfaced in the raised
:class:`~statement_parser.errors.OcrError`. No retries; the fallback chain in
:func:`extract_text` is the only recovery.
"""

from __future__ import annotations

import base64
import json
import mimetypes
import os
import urllib.error
import urllib.parse
import urllib.request
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from os import PathLike
from pathlib import Path
from typing import Any, Protocol

from openai import OpenAI, OpenAIError
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..errors import OcrError, OcrUnavailableError
from ..logging_setup import get_logger

GOOGLE_VISION_URL = "https://vision.googleapis.com/v1/images:annotate"
OCR_SPACE_URL = "https://api.ocr.space/parse/image"

_PROVIDERS_ENV = "STATEMENT_PARSER_OCR_PROVIDERS"
_DEFAULT_TIMEOUT_SEC = 30.0
_OPENAI_MODEL = "gpt-5"
_TRANSCRIBE_INSTRUCTIONS = (
    "Transcribe every line of text in this bank statement screenshot exactly as "
    "printed, top to bottom, one line per output line. Keep dates, signs, "
    "spaces and decimal commas in amounts unchanged. Output only the text."
)

_logger = get_logger("statement_parser.ocr")


@dataclass(frozen=True, slots=True)
class StatementImage:
    """Raw image bytes plus the MIME type the providers should declare."""

    data: bytes
    mime_type: str

    @property
    def base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")

    @property
    def data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.base64}"


def load_image(path: str | PathLike[str]) -> StatementImage:
    p = Path(path).expanduser()
    try:
        data = p.read_bytes()
    except OSError as e:
        raise OcrError(f"cannot read image {p}: {e}") from e
    if not data:
        raise OcrError(f"image file is empty: {p}")
    mime, _ = mimetypes.guess_type(p.name)
    return StatementImage(data=data, mime_type=mime or "image/jpeg")


class OcrProvider(Protocol):
    name: str

    def extract(self, image: StatementImage) -> str: ...


# ---------------------------------------------------------------------------
# HTTP helper
# ---------------------------------------------------------------------------


def _post(
    url: str,
    body: bytes,
    *,
    headers: Mapping[str, str],
    provider: str,
    timeout: float,
) -> dict[str, Any]:
    req = urllib.request.Request(url, data=body, method="POST")
    for k, v in headers.items():
        req.add_header(k, v)

    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            raw = resp.read()
    except urllib.error.HTTPError as e:
        err_body = e.read().decode("utf-8", errors="replace") if e.fp is not None else ""
        raise OcrError(f"HTTP {e.code} {e.reason}: {err_body}", provider=provider) from e
    except urllib.error.URLError as e:
        raise OcrError(f"request failed: {e.reason}", provider=provider) from e

    try:
        decoded = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise OcrError("response is not valid JSON", provider=provider) from e
    if not isinstance(decoded, dict):
        raise OcrError("response JSON is not an object", provider=provider)
    return decoded


# ---------------------------------------------------------------------------
# Google Cloud Vision
# ---------------------------------------------------------------------------


class _VisionAnnotation(BaseModel):
    model_config = ConfigDict(extra="ignore")

    description: str = ""


class _VisionStatus(BaseModel):
    model_config = ConfigDict(extra="ignore")

    code: int | None = None
    message: str = ""


class _VisionResult(BaseModel):
    model_config = ConfigDict(extra="ignore")

    textAnnotations: list[_VisionAnnotation] = Field(default_factory=list)
    error: _VisionStatus | None = None


class _VisionResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    responses: list[_VisionResult] = Field(default_factory=list)


class GoogleVisionProvider:
    """Google Cloud Vision ``TEXT_DETECTION``.

    The first text annotation holds the full detected text with line breaks
    preserved, which is what the segmenter expects.
    """

    name = "google"

    def __init__(self, api_key: str, *, timeout: float = _DEFAULT_TIMEOUT_SEC) -> None:
        if not api_key:
            raise ValueError("api_key is required")
        self._api_key = api_key
        self._timeout = timeout

    def extract(self, image: StatementImage) -> str:
        payload = {
            "requests": [
                {
                    "image": {"content": image.base64},
                    "features": [{"type": "TEXT_DETECTION", "maxResults": 50}],
                }
            ]
        }
        url = f"{GOOGLE_VISION_URL}?{urllib.parse.urlencode({'key': self._api_key})}"
        decoded = _post(
            url,
            json.dumps(payload).encode("utf-8"),
            headers={"Content-Type": "application/json"},
            provider=self.name,
            timeout=self._timeout,
        )
        try:
            parsed = _VisionResponse.model_validate(decoded)
        except ValidationError as e:
            raise OcrError(f"unexpected response shape: {e}", provider=self.name) from e

        if not parsed.responses:
            raise OcrError("response contained no results", provider=self.name)
        first = parsed.responses[0]
        if first.error is not None:
            raise OcrError(f"API error: {first.error.message}", provider=self.name)
        if not first.textAnnotations:
            return ""
        return first.textAnnotations[0].description


# ---------------------------------------------------------------------------
# OCR.space
# ---------------------------------------------------------------------------


class _OcrSpaceResult(BaseModel):
    model_config = ConfigDict(extra="ignore")

    ParsedText: str = ""


class _OcrSpaceResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    ParsedResults: list[_OcrSpaceResult] | None = None
    IsErroredOnProcessing: bool = False
    ErrorMessage: list[str] | str | None = None


class OcrSpaceProvider:
    """OCR.space ``parse/image`` using OCR engine 2."""

    name = "ocrspace"

    def __init__(
        self,
        api_key: str,
        *,
        language: str = "eng",
        timeout: float = _DEFAULT_TIMEOUT_SEC,
    ) -> None:
        if not api_key:
            raise ValueError("api_key is required")
        self._api_key = api_key
        self._language = language
        self._timeout = timeout

    def extract(self, image: StatementImage) -> str:
        form = {
            "base64Image": image.data_url,
            "language": self._language,
            "isOverlayRequired": "false",
            "detectOrientation": "true",
            "scale": "true",
            "OCREngine": "2",
        }
        decoded = _post(
            OCR_SPACE_URL,
            urllib.parse.urlencode(form).encode("ascii"),
            headers={
                "apikey": self._api_key,
                "Content-Type": "application/x-www-form-urlencoded",
            },
            provider=self.name,
            timeout=self._timeout,
        )
        try:
            parsed = _OcrSpaceResponse.model_validate(decoded)
        except ValidationError as e:
            raise OcrError(f"unexpected response shape: {e}", provider=self.name) from e

        if parsed.IsErroredOnProcessing:
            msg = parsed.ErrorMessage
            detail = "; ".join(msg) if isinstance(msg, list) else (msg or "unknown error")
            raise OcrError(f"processing failed: {detail}", provider=self.name)
        if not parsed.ParsedResults:
            return ""
        return parsed.ParsedResults[0].ParsedText


# ---------------------------------------------------------------------------
# OpenAI vision
# ---------------------------------------------------------------------------


class OpenAIVisionProvider:
    """Transcription through an OpenAI vision-capable model.

    The client is created lazily so that constructing the provider never reads
    ``OPENAI_API_KEY``.
    """

    name = "openai"

    def __init__(self, *, model: str = _OPENAI_MODEL, client: Any | None = None) -> None:
        self._model = model
        self._client = client

    def _get_client(self) -> Any:
        if self._client is None:
            self._client = OpenAI()
        return self._client

    def extract(self, image: StatementImage) -> str:
        try:
            resp = self._get_client().responses.create(
                model=self._model,
                instructions=_TRANSCRIBE_INSTRUCTIONS,
                input=[
                    {
                        "role": "user",
                        "content": [
                            {"type": "input_text", "text": "Transcribe this statement."},
                            {"type": "input_image", "image_url": image.data_url},
                        ],
                    }
                ],
            )
        except OpenAIError as e:
            raise OcrError(f"request failed: {e}", provider=self.name) from e

        text = getattr(resp, "output_text", None)
        if not isinstance(text, str):
            raise OcrError("unexpected Responses API shape; no output_text", provider=self.name)
        return text


# ---------------------------------------------------------------------------
# Provider chain
# ---------------------------------------------------------------------------

_KNOWN_PROVIDERS: tuple[str, ...] = ("google", "ocrspace", "openai")


def _build_provider(name: str) -> OcrProvider | None:
    if name == "google":
        key = os.getenv("GOOGLE_VISION_API_KEY", "").strip()
        return GoogleVisionProvider(key) if key else None
    if name == "ocrspace":
        key = os.getenv("OCR_SPACE_API_KEY", "").strip()
        return OcrSpaceProvider(key) if key else None
    if name == "openai":
        return OpenAIVisionProvider() if os.getenv("OPENAI_API_KEY", "").strip() else None
    raise ValueError(f"unknown OCR provider {name!r}; expected one of {list(_KNOWN_PROVIDERS)}")


def default_providers(names: Sequence[str] | None = None) -> list[OcrProvider]:
    """Build the provider chain from the configured API keys.

    ``names`` (or ``$STATEMENT_PARSER_OCR_PROVIDERS``, comma-separated) sets
    which providers are tried and in which order; the default is Google
    Vision, then OCR.space, then OpenAI. Providers without a key are skipped.
    """

    if names is None:
        env_val = os.getenv(_PROVIDERS_ENV, "")
        names = [n for n in (s.strip().lower() for s in env_val.split(",")) if n]
        if not names:
            names = list(_KNOWN_PROVIDERS)

    chain: list[OcrProvider] = []
    for name in names:
        provider = _build_provider(name.strip().lower())
        if provider is None:
            _logger.debug("ocr:provider_skipped provider=%s reason=no_api_key", name)
            continue
        chain.append(provider)
    return chain


def extract_text(image_path: str | PathLike[str], providers: Sequence[OcrProvider]) -> str:
    """Return the text of the first provider that produces any.

    Raises :class:`OcrUnavailableError` with every provider's failure when
    none succeeds. An empty transcription counts as a failure.
    """

    image = load_image(image_path)
    failures: list[OcrError] = []
    for provider in providers:
        try:
            text = provider.extract(image)
        except OcrError as e:
            _logger.warning("ocr:provider_failed provider=%s error=%s", provider.name, e)
            failures.append(e)
            continue
        if not text.strip():
            _logger.warning("ocr:provider_empty provider=%s", provider.name)
            failures.append(OcrError("no text detected", provider=provider.name))
            continue
        _logger.info("ocr:extracted provider=%s chars=%d", provider.name, len(text))
        return text
    raise OcrUnavailableError(failures)


__all__ = [
    "StatementImage",
    "load_image",
    "OcrProvider",
    "GoogleVisionProvider",
    "OcrSpaceProvider",
    "OpenAIVisionProvider",
    "default_providers",
    "extract_text",
]
