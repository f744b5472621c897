"""External vision APIs used by the analysis chain.

Every provider exposes ``available`` (an API key is configured) and
``analyze(image_bytes, image_data)``. Failures of any kind surface as
ProviderError so the chain can move on to the next provider.
"""
import base64
import os
from typing import List, Optional

import requests

OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
OPENAI_VISION_MODEL = os.getenv("OPENAI_VISION_MODEL", "gpt-4o-mini")
OPENAI_CHAT_URL = "https://api.openai.com/v1/chat/completions"

HUGGING_FACE_API_KEY = os.getenv("HUGGING_FACE_ACCESS_TOKEN", "")
HF_INFERENCE_URL = "https://api-inference.huggingface.co/models"

REQUEST_TIMEOUT = 30

CLIP_CANDIDATE_LABELS = [
    "yoda", "darth vader", "luke skywalker", "princess leia", "han solo",
    "chewbacca", "spider-man", "iron man", "robot", "mask", "sword", "armor",
    "warrior", "creature", "athlete", "animal", "vehicle", "landscape",
]


class ProviderError(RuntimeError):
    pass


class VisionProvider:
    name = "provider"

    def __init__(self, api_key: Optional[str] = None):
        self.api_key = api_key

    @property
    def available(self) -> bool:
        return bool(self.api_key)

    def analyze(self, image_bytes: Optional[bytes], image_data: str):
        raise NotImplementedError

    def _post(self, url, **kwargs):
        headers = kwargs.pop("headers", {})
        headers["Authorization"] = f"Bearer {self.api_key}"
        try:
            response = requests.post(url, headers=headers, timeout=REQUEST_TIMEOUT, **kwargs)
        except requests.RequestException as e:
            raise ProviderError(f"{self.name} request failed: {e}") from e
        if response.status_code != 200:
            raise ProviderError(f"{self.name} API error: {response.status_code}")
        try:
            return response.json()
        except ValueError as e:
            raise ProviderError(f"{self.name} returned invalid JSON") from e

    def _require_bytes(self, image_bytes):
        if not image_bytes:
            raise ProviderError(f"{self.name} needs decoded image bytes")
        return image_bytes


class OpenAIVisionProvider(VisionProvider):
    """Free-text description of the image from an OpenAI vision model."""
    name = "openai_vision"

    PROMPT = (
        "Describe the main subject of this image for a trading card. If it is a "
        "known character (movie, comic, game), name the character. Mention "
        "colours, costume and notable objects in one or two sentences."
    )

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        super().__init__(OPENAI_API_KEY if api_key is None else api_key)
        self.model = model or OPENAI_VISION_MODEL

    def analyze(self, image_bytes, image_data) -> str:
        if image_data.startswith(("http://", "https://", "data:image/")):
            image_url = image_data
        else:
            encoded = base64.b64encode(self._require_bytes(image_bytes)).decode("ascii")
            image_url = f"data:image/jpeg;base64,{encoded}"

        payload = {
            "model": self.model,
            "max_tokens": 300,
            "messages": [{
                "role": "user",
                "content": [
                    {"type": "text", "text": self.PROMPT},
                    {"type": "image_url", "image_url": {"url": image_url}},
                ],
            }],
        }
        result = self._post(OPENAI_CHAT_URL, json=payload)
        try:
            return result["choices"][0]["message"]["content"].strip()
        except (KeyError, IndexError, TypeError, AttributeError) as e:
            raise ProviderError("openai_vision response had no description") from e


class BLIPProvider(VisionProvider):
    """Image captioning through the HuggingFace inference API."""
    name = "blip"
    model = "Salesforce/blip-image-captioning-large"

    def __init__(self, api_key: Optional[str] = None):
        super().__init__(HUGGING_FACE_API_KEY if api_key is None else api_key)

    def analyze(self, image_bytes, image_data) -> str:
        result = self._post(f"{HF_INFERENCE_URL}/{self.model}", data=self._require_bytes(image_bytes))
        if isinstance(result, list) and result and isinstance(result[0], dict):
            caption = result[0].get("generated_text", "")
            if caption:
                return caption.strip()
        raise ProviderError("blip returned no caption")


class CLIPProvider(VisionProvider):
    """Zero-shot labelling against CLIP_CANDIDATE_LABELS."""
    name = "clip"
    model = "openai/clip-vit-large-patch14"
    min_score = 0.1

    def __init__(self, api_key: Optional[str] = None, candidate_labels: Optional[List[str]] = None):
        super().__init__(HUGGING_FACE_API_KEY if api_key is None else api_key)
        self.candidate_labels = candidate_labels or CLIP_CANDIDATE_LABELS

    def analyze(self, image_bytes, image_data) -> List[str]:
        payload = {
            "image": base64.b64encode(self._require_bytes(image_bytes)).decode("ascii"),
            "parameters": {"candidate_labels": self.candidate_labels},
        }
        result = self._post(f"{HF_INFERENCE_URL}/{self.model}", json=payload)
        if not isinstance(result, list):
            raise ProviderError("clip returned an unexpected payload")
        ranked = sorted(
            (item for item in result if isinstance(item, dict) and item.get("score", 0) > self.min_score),
            key=lambda item: item["score"],
            reverse=True,
        )
        return [item["label"].lower() for item in ranked]


class ResNetProvider(VisionProvider):
    """ImageNet classification with microsoft/resnet-50."""
    name = "resnet50"
    model = "microsoft/resnet-50"
    min_score = 0.05
    max_labels = 15

    def __init__(self, api_key: Optional[str] = None):
        super().__init__(HUGGING_FACE_API_KEY if api_key is None else api_key)

    def analyze(self, image_bytes, image_data) -> List[str]:
        result = self._post(f"{HF_INFERENCE_URL}/{self.model}", data=self._require_bytes(image_bytes))
        if not isinstance(result, list):
            raise ProviderError("resnet50 returned an unexpected payload")
        labels = [
            item["label"].lower()
            for item in result
            if isinstance(item, dict) and item.get("score", 0) > self.min_score and item.get("label")
        ]
        return labels[:self.max_labels]


def default_providers():
    """The chain in order: OpenAI Vision, BLIP, CLIP, ResNet-50."""
    return [OpenAIVisionProvider(), BLIPProvider(), CLIPProvider(), ResNetProvider()]
