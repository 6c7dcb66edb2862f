# server_api.py
"""
Compute-party service.

Holds no keys: it receives ciphertexts (and, for relinearization, the public
evaluation key), computes on them blindly and returns ciphertexts.
"""

import logging
from typing import Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from . import __version__
from .bfv_scheme import add_encrypted, add_plain, multiply_encrypted, multiply_plain, sub_encrypted
from .errors import BFVError
from .relinearization import relinearize
from .serialization import (
    CiphertextModel,
    EvaluationKeyModel,
    PlaintextModel,
    from_model,
    to_model,
)

logger = logging.getLogger(__name__)

app = FastAPI(title="BFV Compute Server", version=__version__)


class BinaryOpRequest(BaseModel):
    lhs: CiphertextModel
    rhs: CiphertextModel


class MultiplyRequest(BaseModel):
    lhs: CiphertextModel
    rhs: CiphertextModel
    evaluation_key: Optional[EvaluationKeyModel] = None


class RelinearizeRequest(BaseModel):
    ciphertext: CiphertextModel
    evaluation_key: EvaluationKeyModel


class AddPlainRequest(BaseModel):
    ciphertext: CiphertextModel
    plaintext: PlaintextModel


class MultiplyPlainRequest(BaseModel):
    ciphertext: CiphertextModel
    scalar: int


def _run(op_name, fn, *models):
    try:
        values = [from_model(m) for m in models]
        result = fn(*values)
    except BFVError as e:
        logger.warning("%s rejected: %s", op_name, e)
        raise HTTPException(status_code=400, detail=str(e))
    logger.info("%s -> %d-component ciphertext", op_name, len(result))
    return to_model(result)


@app.get("/")
def home():
    return {"status": "BFV Compute Server Online", "version": __version__}


@app.post("/add", response_model=CiphertextModel)
def add(request: BinaryOpRequest):
    return _run("add", add_encrypted, request.lhs, request.rhs)


@app.post("/sub", response_model=CiphertextModel)
def sub(request: BinaryOpRequest):
    return _run("sub", sub_encrypted, request.lhs, request.rhs)


@app.post("/add_plain", response_model=CiphertextModel)
def add_plaintext(request: AddPlainRequest):
    return _run("add_plain", add_plain, request.ciphertext, request.plaintext)


@app.post("/multiply", response_model=CiphertextModel)
def multiply(request: MultiplyRequest):
    if request.evaluation_key is None:
        return _run("multiply", multiply_encrypted, request.lhs, request.rhs)
    return _run(
        "multiply+relinearize",
        lambda a, b, k: relinearize(multiply_encrypted(a, b), k),
        request.lhs, request.rhs, request.evaluation_key,
    )


@app.post("/relinearize", response_model=CiphertextModel)
def relinearize_ciphertext(request: RelinearizeRequest):
    return _run("relinearize", relinearize, request.ciphertext, request.evaluation_key)


@app.post("/multiply_plain", response_model=CiphertextModel)
def multiply_by_scalar(request: MultiplyPlainRequest):
    try:
        ciphertext = from_model(request.ciphertext)
    except BFVError as e:
        raise HTTPException(status_code=400, detail=str(e))
    result = multiply_plain(ciphertext, request.scalar)
    logger.info("multiply_plain -> %d-component ciphertext", len(result))
    return to_model(result)
