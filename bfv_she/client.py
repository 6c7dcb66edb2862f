"""Client for the compute-party service. Only public material is ever sent."""

import logging
from typing import Optional

import requests

from .ciphertext import Ciphertext, Plaintext
from .keys import EvaluationKey
from .serialization import CiphertextModel, from_model, to_model

logger = logging.getLogger(__name__)

DEFAULT_SERVER_URL = "http://localhost:8000"


class ComputeClient:
    def __init__(self, base_url: str = DEFAULT_SERVER_URL, session=None, timeout: Optional[float] = 60.0):
        self.base_url = base_url.rstrip("/")
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout

    def _post(self, path: str, payload: dict) -> Ciphertext:
        logger.debug("POST %s%s", self.base_url, path)
        response = self.session.post(f"{self.base_url}{path}", json=payload, timeout=self.timeout)
        response.raise_for_status()
        return from_model(CiphertextModel.model_validate(response.json()))

    @staticmethod
    def _dump(value) -> dict:
        return to_model(value).model_dump(mode="json")

    def status(self) -> dict:
        response = self.session.get(f"{self.base_url}/", timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    def add(self, ct1: Ciphertext, ct2: Ciphertext) -> Ciphertext:
        return self._post("/add", {"lhs": self._dump(ct1), "rhs": self._dump(ct2)})

    def sub(self, ct1: Ciphertext, ct2: Ciphertext) -> Ciphertext:
        return self._post("/sub", {"lhs": self._dump(ct1), "rhs": self._dump(ct2)})

    def add_plain(self, ct: Ciphertext, plaintext: Plaintext) -> Ciphertext:
        return self._post("/add_plain", {"ciphertext": self._dump(ct), "plaintext": self._dump(plaintext)})

    def multiply(self, ct1: Ciphertext, ct2: Ciphertext, eval_key: Optional[EvaluationKey] = None) -> Ciphertext:
        payload = {"lhs": self._dump(ct1), "rhs": self._dump(ct2)}
        if eval_key is not None:
            payload["evaluation_key"] = self._dump(eval_key)
        return self._post("/multiply", payload)

    def relinearize(self, ct: Ciphertext, eval_key: EvaluationKey) -> Ciphertext:
        return self._post("/relinearize", {"ciphertext": self._dump(ct), "evaluation_key": self._dump(eval_key)})

    def multiply_plain(self, ct: Ciphertext, scalar: int) -> Ciphertext:
        return self._post("/multiply_plain", {"ciphertext": self._dump(ct), "scalar": int(scalar)})
