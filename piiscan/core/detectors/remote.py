"""RemoteDetector: PII detection delegated to a local LLM via Ollama.

The detector builds a prompt asking the model for a JSON document of the
form::

    {"personal_information": [
        {"type": "email", "value": "a@b.co", "line": 1, "start": 0, "end": 6}
    ]}

and parses the model's reply in three steps:

1. parse the reply directly;
2. slice from the first ``{`` to the last ``}`` and parse that;
3. fall back to running :class:`~piiscan.core.detectors.pattern.PatternDetector`
   over the original text.

A model finding with ``line < 1``, a negative offset or ``start > end``
invalidates the whole envelope, which moves parsing on to the next step.

Transport failures are not absorbed: once the client has exhausted its
retries, :class:`~piiscan.core.ollama_client.ApiError` propagates out of
:meth:`RemoteDetector.detect`.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from piiscan.core.detectors.base import Detector
from piiscan.core.detectors.pattern import PatternDetector
from piiscan.core.models import PersonalInformation

if TYPE_CHECKING:
    from piiscan.core.ollama_client import OllamaClient

logger = logging.getLogger(__name__)

_PROMPT_TEMPLATE = """\
You are a data protection assistant. Find all personal information in the \
text below, such as email addresses, phone numbers, credit card numbers, \
names and postal addresses.

Respond with JSON only, using exactly this structure:
{{"personal_information": [{{"type": "<kind>", "value": "<matched text>", \
"line": <1-based line number>, "start": <0-based start offset in the line>, \
"end": <0-based end offset in the line>}}]}}

If nothing is found, respond with {{"personal_information": []}}.

Text:
{text}
"""


def build_prompt(text: str) -> str:
    """Return the detection prompt for *text*."""
    return _PROMPT_TEMPLATE.format(text=text)


# ---------------------------------------------------------------------------
# Response envelope
# ---------------------------------------------------------------------------


class RemoteFinding(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: str
    value: str
    line: int = Field(ge=1)
    start: int = Field(ge=0)
    end: int = Field(ge=0)

    @model_validator(mode="after")
    def _check_span(self) -> "RemoteFinding":
        if self.start > self.end:
            raise ValueError(f"start ({self.start}) is after end ({self.end})")
        return self

    def to_finding(self) -> PersonalInformation:
        return PersonalInformation(
            type=self.type,
            value=self.value,
            line=self.line,
            start=self.start,
            end=self.end,
        )


class RemoteEnvelope(BaseModel):
    model_config = ConfigDict(extra="ignore")

    personal_information: list[RemoteFinding]


def _try_parse(raw: str) -> list[PersonalInformation] | None:
    try:
        envelope = RemoteEnvelope.model_validate_json(raw)
    except ValidationError:
        return None
    return [item.to_finding() for item in envelope.personal_information]


# ---------------------------------------------------------------------------
# RemoteDetector
# ---------------------------------------------------------------------------


class RemoteDetector(Detector):
    """Detector backed by an :class:`~piiscan.core.ollama_client.OllamaClient`.

    Args:
        client: Configured Ollama client.
        fallback: Pattern detector used when the model reply cannot be
            parsed.  A default :class:`PatternDetector` is created when
            ``None``.
    """

    def __init__(
        self,
        client: OllamaClient,
        fallback: PatternDetector | None = None,
    ) -> None:
        self._client = client
        self._fallback = fallback if fallback is not None else PatternDetector()

    async def detect(self, text: str) -> list[PersonalInformation]:
        raw = await self._client.generate(build_prompt(text))
        return self.parse_response(raw, text)

    def name(self) -> str:
        return "remote"

    def is_available(self) -> bool:
        return True

    def parse_response(self, raw: str, original_text: str) -> list[PersonalInformation]:
        """Turn the model's reply into findings.  Never raises."""
        findings = _try_parse(raw)
        if findings is not None:
            logger.debug("Remote response parsed directly: items=%d", len(findings))
            return findings

        first = raw.find("{")
        last = raw.rfind("}")
        if first != -1 and last > first:
            findings = _try_parse(raw[first : last + 1])
            if findings is not None:
                logger.debug(
                    "Remote response parsed after slicing: items=%d", len(findings)
                )
                return findings

        logger.warning(
            "Could not parse remote response (length=%d); using pattern fallback",
            len(raw),
        )
        return self._fallback.find_all(original_text)
