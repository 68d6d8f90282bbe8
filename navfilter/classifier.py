"""Zero-shot page classification through a remote inference endpoint."""

from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from navfilter.config import FilterConfig
from navfilter.errors import ClassifierError
from navfilter.logger import FilterLogger


@dataclass(frozen=True)
class ClassificationResult:
    """Top label and its confidence for one navigation. Never stored."""

    label: str
    score: float


class ClassifierClient:
    """Sends ``"<title> - <url>"`` to the classifier and keeps the top label.

    Any failure (transport, timeout, HTTP status, malformed body) is logged
    and turned into the fallback label with a score of 0.0, which can never
    reach the block threshold.
    """

    def __init__(
        self,
        config: FilterConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        logger: Optional[FilterLogger] = None,
    ) -> None:
        self.config = config
        self.transport = transport
        self.logger = logger or FilterLogger()

    @property
    def fallback(self) -> ClassificationResult:
        return ClassificationResult(label=self.config.fallback_label, score=0.0)

    @staticmethod
    def build_input(url: str, title: Optional[str]) -> str:
        return f"{title or 'Unknown Title'} - {url}"

    def build_payload(self, url: str, title: Optional[str]) -> Dict[str, Any]:
        return {
            "inputs": self.build_input(url, title),
            "parameters": {
                "candidate_labels": list(self.config.candidate_labels),
                "multi_label": False,
            },
        }

    async def classify(self, url: str, title: Optional[str] = None) -> ClassificationResult:
        try:
            body = await self._post(self.build_payload(url, title))
            return self._parse(body)
        except httpx.TimeoutException as exc:
            self.logger.error(
                "Classifier timeout after %ss for %s: %s",
                self.config.classifier_timeout,
                url,
                exc,
            )
        except httpx.HTTPError as exc:
            self.logger.error("Classifier request error for %s: %s", url, exc)
        except (httpx.InvalidURL, UnicodeError) as exc:
            self.logger.error("Classifier request could not be built for %s: %s", url, exc)
        except ClassifierError as exc:
            self.logger.error("HF API error or empty result for %s: %s", url, exc.message)
        return self.fallback

    async def _post(self, payload: Dict[str, Any]) -> Any:
        headers = {"Authorization": f"Bearer {self.config.api_key}"}
        async with httpx.AsyncClient(
            transport=self.transport,
            timeout=httpx.Timeout(self.config.classifier_timeout),
        ) as client:
            response = await client.post(
                self.config.classifier_url, json=payload, headers=headers
            )
        try:
            body = response.json()
        except ValueError as exc:
            raise ClassifierError(
                f"HTTP {response.status_code} with non-JSON body"
            ) from exc
        if response.is_error:
            detail = body.get("error") if isinstance(body, dict) else None
            raise ClassifierError(f"HTTP {response.status_code}: {detail or 'no detail'}")
        return body

    def _parse(self, body: Any) -> ClassificationResult:
        if not isinstance(body, dict):
            raise ClassifierError("response is not a JSON object")
        if body.get("error"):
            raise ClassifierError(str(body["error"]))
        labels = body.get("labels")
        scores = body.get("scores")
        if not isinstance(labels, list) or not labels:
            raise ClassifierError("missing or empty labels")
        if not isinstance(scores, list) or not scores:
            raise ClassifierError("missing or empty scores")
        label, score = labels[0], scores[0]
        if not isinstance(label, str):
            raise ClassifierError(f"top label is not a string: {label!r}")
        if isinstance(score, bool) or not isinstance(score, (int, float)):
            raise ClassifierError(f"top score is not a number: {score!r}")
        return ClassificationResult(label=label, score=float(score))
