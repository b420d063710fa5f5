"""Weight codec — packs ELM matrices and encoder settings into one opaque blob.

The payload is a single JSON document so the hidden layer, the output
layer and everything the encoder needs to be rebuilt travel together and
are read back as one unit.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Optional

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from ..errors import ValidationError

PAYLOAD_FORMAT = "astervault-elm/1"


class EncoderConfig(BaseModel):
    """Parameters needed to rebuild the text encoder after reload."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    mode: str = Field(default="char", pattern=r"^(char|token)$")
    max_len: int = Field(default=30, ge=1)
    use_tokenizer: bool = True


class ModelConfig(BaseModel):
    """ELM hyperparameters plus the encoder reconstruction section."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    hidden_units: int = Field(default=128, ge=1)
    activation: str = Field(default="relu", pattern=r"^(relu|leakyrelu|sigmoid|tanh|linear|gelu)$")
    weight_init: str = Field(default="xavier", pattern=r"^(uniform|xavier|he)$")
    ridge_lambda: float = Field(default=1e-6, ge=0)
    max_len: int = Field(default=30, ge=1)
    dropout: float = Field(default=0.0, ge=0, le=1)
    use_tokenizer: bool = True
    encoder: Optional[EncoderConfig] = None


def normalize_config(config: dict, operation: str = "normalize_config") -> dict:
    """Validate a model config and make sure it carries an ``encoder`` section.

    Caller keys are kept verbatim. A missing encoder section is derived from
    ``maxLen``/``useTokenizer`` in char mode.
    """
    if not isinstance(config, dict):
        raise ValidationError(operation, "config must be an object")
    try:
        parsed = ModelConfig.model_validate(config)
    except PydanticValidationError as exc:
        raise ValidationError(operation, f"invalid model config: {_first_error(exc)}") from exc

    normalized = dict(config)
    if parsed.encoder is None:
        normalized["encoder"] = EncoderConfig(
            max_len=parsed.max_len, use_tokenizer=parsed.use_tokenizer
        ).model_dump(by_alias=True)
    return normalized


def _first_error(exc: PydanticValidationError) -> str:
    err = exc.errors()[0]
    loc = ".".join(str(part) for part in err.get("loc", ()))
    return f"{loc}: {err.get('msg')}" if loc else err.get("msg", "invalid value")


@dataclass
class WeightPayload:
    """Decoded weights, ready to hand to the numerical library."""

    W: np.ndarray
    b: np.ndarray
    beta: np.ndarray
    encoder_config: dict
    aux: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "W": self.W.tolist(),
            "b": self.b.tolist(),
            "beta": self.beta.tolist(),
            "encoder_config": dict(self.encoder_config),
            "aux": dict(self.aux),
        }


def _as_list(value: Any, name: str) -> list:
    try:
        return np.asarray(value, dtype=np.float64).tolist()
    except (TypeError, ValueError) as exc:
        raise ValidationError("pack_weights", f"{name} is not numeric: {exc}") from exc


def pack_weights(W, b, beta, encoder_config: dict, **aux: Any) -> bytes:
    """Serialize the three ELM arrays, encoder settings and auxiliary state.

    ``aux`` holds library state such as a character vocabulary; it must be
    JSON-serializable.
    """
    if not encoder_config:
        raise ValidationError("pack_weights", "encoder_config is required to reload the model")
    try:
        encoder = EncoderConfig.model_validate(encoder_config).model_dump(by_alias=True)
    except PydanticValidationError as exc:
        raise ValidationError("pack_weights", f"invalid encoder config: {_first_error(exc)}") from exc
    payload = {
        "format": PAYLOAD_FORMAT,
        "W": _as_list(W, "W"),
        "b": _as_list(b, "b"),
        "beta": _as_list(beta, "beta"),
        "encoderConfig": encoder,
        "aux": aux,
    }
    try:
        return json.dumps(payload, separators=(",", ":"), sort_keys=True).encode("utf-8")
    except (TypeError, ValueError) as exc:
        raise ValidationError("pack_weights", f"auxiliary state is not serializable: {exc}") from exc


def unpack_weights(blob: bytes, config: dict | None = None) -> WeightPayload:
    """Decode a blob produced by ``pack_weights``.

    Blobs written without encoder settings fall back to the record's config
    ``encoder`` section; with neither the model cannot be used and a
    ``ValidationError`` is raised.
    """
    try:
        payload = json.loads(blob.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ValidationError("unpack_weights", f"weights blob is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise ValidationError("unpack_weights", "weights blob must decode to an object")

    missing = [key for key in ("W", "b", "beta") if key not in payload]
    if missing:
        raise ValidationError("unpack_weights", f"weights blob missing arrays: {', '.join(missing)}")

    encoder = payload.get("encoderConfig")
    if not encoder and config:
        encoder = config.get("encoder")
    if not encoder:
        raise ValidationError(
            "unpack_weights", "no encoder configuration stored; model cannot be reconstructed"
        )

    aux = payload.get("aux") or {}
    # Older blobs kept library state at the top level
    for key in ("charSet", "metrics"):
        if key in payload and key not in aux:
            aux[key] = payload[key]

    return WeightPayload(
        W=np.asarray(payload["W"], dtype=np.float64),
        b=np.asarray(payload["b"], dtype=np.float64),
        beta=np.asarray(payload["beta"], dtype=np.float64),
        encoder_config=dict(encoder),
        aux=aux,
    )
