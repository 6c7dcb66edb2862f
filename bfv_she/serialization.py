"""
Wire models for values that may leave the client.

Only public material has a model: parameters, public keys, evaluation keys,
ciphertexts and plaintext operands. Secret keys are refused.
Ring elements travel as base64 of fixed-width big-endian coefficients.
"""

from __future__ import annotations

import base64
import re
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field

from .ciphertext import Ciphertext, Plaintext
from .errors import UsageError
from .keys import EvaluationKey, PublicKey, SecretKey
from .params import BFVParameters, SecurityLevel
from .polynomial import RingElement


def encode_ring_element(element: RingElement) -> str:
    width = max(1, (element.q.bit_length() + 7) // 8)
    raw = b"".join(int(c).to_bytes(width, "big") for c in element.coeffs)
    return base64.b64encode(raw).decode("ascii")


def decode_ring_element(data: str, q: int, n: int) -> RingElement:
    width = max(1, (q.bit_length() + 7) // 8)
    try:
        raw = base64.b64decode(data.encode("ascii"), validate=True)
    except ValueError as e:
        raise UsageError(f"malformed ring element encoding: {e}") from e
    if len(raw) != width * n:
        raise UsageError(f"ring element has {len(raw)} bytes, expected {width * n}")
    coeffs = [int.from_bytes(raw[i * width:(i + 1) * width], "big") for i in range(n)]
    if any(c >= q for c in coeffs):
        raise UsageError("ring element coefficient out of range")
    return RingElement(coeffs, q, n)


class ParametersModel(BaseModel):
    n: int
    q: str = Field(description="ciphertext modulus as a decimal string")
    t: int
    sigma: float = 3.2
    security_level: Optional[int] = None


class PublicKeyModel(BaseModel):
    params: ParametersModel
    a: str
    b: str


class EvaluationKeyModel(BaseModel):
    params: ParametersModel
    decomposition_base: int
    pairs: List[Tuple[str, str]]


class CiphertextModel(BaseModel):
    params: ParametersModel
    components: List[str] = Field(min_length=1, max_length=3)


class PlaintextModel(BaseModel):
    n: int
    t: int
    coeffs: List[int]


def params_to_model(params: BFVParameters) -> ParametersModel:
    level = int(params.security_level) if params.security_level is not None else None
    return ParametersModel(n=params.n, q=str(params.q), t=params.t, sigma=params.sigma, security_level=level)


_DECIMAL = re.compile(r"[0-9]+")


def params_from_model(model: ParametersModel) -> BFVParameters:
    if not _DECIMAL.fullmatch(model.q):
        raise UsageError(f"modulus must be a decimal integer, got {model.q!r}")
    level = None
    if model.security_level is not None:
        try:
            level = SecurityLevel(model.security_level)
        except ValueError:
            raise UsageError(f"unsupported security level {model.security_level}") from None
    return BFVParameters(n=model.n, q=int(model.q), t=model.t, sigma=model.sigma, security_level=level)


def to_model(obj):
    """Convert an exportable value to its wire model."""
    if isinstance(obj, SecretKey):
        raise UsageError("secret keys are never exported")
    if isinstance(obj, BFVParameters):
        return params_to_model(obj)
    if isinstance(obj, PublicKey):
        return PublicKeyModel(
            params=params_to_model(obj.params),
            a=encode_ring_element(obj.a),
            b=encode_ring_element(obj.b),
        )
    if isinstance(obj, EvaluationKey):
        return EvaluationKeyModel(
            params=params_to_model(obj.params),
            decomposition_base=obj.decomposition_base,
            pairs=[(encode_ring_element(a), encode_ring_element(b)) for a, b in obj.pairs],
        )
    if isinstance(obj, Ciphertext):
        return CiphertextModel(
            params=params_to_model(obj.params),
            components=[encode_ring_element(c) for c in obj.components],
        )
    if isinstance(obj, Plaintext):
        return PlaintextModel(n=obj.n, t=obj.t, coeffs=obj.to_list())
    raise TypeError(f"no wire model for {type(obj).__name__}")


def from_model(model):
    """Rebuild a library value from its wire model."""
    if isinstance(model, ParametersModel):
        return params_from_model(model)
    if isinstance(model, PlaintextModel):
        if model.t < 2 or model.n < 1:
            raise UsageError(f"invalid plaintext shape n={model.n}, t={model.t}")
        if len(model.coeffs) != model.n:
            raise UsageError(f"plaintext has {len(model.coeffs)} coefficients, expected {model.n}")
        return Plaintext(RingElement(model.coeffs, model.t, model.n))

    params = params_from_model(model.params)
    q, n = params.q, params.n
    if isinstance(model, PublicKeyModel):
        return PublicKey(decode_ring_element(model.a, q, n), decode_ring_element(model.b, q, n), params)
    if isinstance(model, EvaluationKeyModel):
        pairs = tuple(
            (decode_ring_element(a, q, n), decode_ring_element(b, q, n)) for a, b in model.pairs
        )
        return EvaluationKey(pairs, model.decomposition_base, params)
    if isinstance(model, CiphertextModel):
        comps = [decode_ring_element(c, q, n) for c in model.components]
        return Ciphertext.from_components(comps, params)
    raise TypeError(f"unknown wire model {type(model).__name__}")


def dumps(obj) -> str:
    return to_model(obj).model_dump_json()


def loads(data: str, model_type):
    return from_model(model_type.model_validate_json(data))
