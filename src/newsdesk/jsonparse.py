"""Best-effort extraction of JSON from free-text model responses."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Generic, Literal, TypeVar, Union

from pydantic import BaseModel, ValidationError

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)

_decoder = json.JSONDecoder()


@dataclass(frozen=True)
class ParseOk(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class ParseErr:
    reason: str

    @property
    def ok(self) -> bool:
        return False


ParseResult = Union[ParseOk[T], ParseErr]


def _strip_fences(text: str) -> str:
    """Return the body of the first markdown code fence, or the text unchanged."""
    cleaned = text.strip()
    if "```" not in cleaned:
        return cleaned
    json_lines = []
    in_fence = False
    for line in cleaned.split("\n"):
        if line.strip().startswith("```") and not in_fence:
            in_fence = True
            continue
        if line.strip().startswith("```") and in_fence:
            break
        if in_fence:
            json_lines.append(line)
    return "\n".join(json_lines) if json_lines else cleaned


def extract_json(
    text: str | None,
    kind: Literal["object", "array", "any"] = "any",
) -> ParseResult[Any]:
    """Find the first well-formed JSON block of the requested kind.

    Surrounding prose and markdown fences are tolerated. Never raises.
    """
    if not text or not text.strip():
        return ParseErr("empty response")

    openers = {"object": "{", "array": "[", "any": "{["}[kind]
    for candidate in (_strip_fences(text), text):
        for idx, char in enumerate(candidate):
            if char not in openers:
                continue
            try:
                value, _ = _decoder.raw_decode(candidate, idx)
            except json.JSONDecodeError:
                continue
            return ParseOk(value)
    return ParseErr(f"no JSON {kind} found in response")


def parse_model(text: str | None, model: type[M]) -> ParseResult[M]:
    """Extract the first JSON object and validate it against ``model``."""
    result = extract_json(text, kind="object")
    if isinstance(result, ParseErr):
        return result
    try:
        return ParseOk(model.model_validate(result.value))
    except ValidationError as exc:
        return ParseErr(f"invalid {model.__name__}: {exc.error_count()} validation error(s)")
    except TypeError as exc:
        return ParseErr(f"invalid {model.__name__}: {exc}")
