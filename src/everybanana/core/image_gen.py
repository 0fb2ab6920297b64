"""
Image generation via the Gemini API.

Text-only prompts go to the Imagen predict endpoint, which honors the aspect
ratio. Prompts with an uploaded image go to the Gemini generateContent
endpoint with the image as inline data. Either way the caller gets back a
data URL it can display directly. One attempt per call; there are no retries.
"""

import json
import time
from typing import Any

import requests

from everybanana.core.config import Config, get_config
from everybanana.core.reference import ReferenceImage, create_image_data_url
from everybanana.core.types import AspectRatio
from everybanana.logging_config import get_logger, log_prompts, mask_secret
from everybanana.utils.exceptions import (
    NetworkError,
    RequestTimeoutError,
    ServiceError,
    ValidationError,
)

logger = get_logger(__name__)

# Max prompt length for logging (large so prompts are effectively never truncated)
_PROMPT_LOG_MAX = 50_000
_DEBUG_TRUNCATE_THRESHOLD = 200
_DEBUG_NEVER_TRUNCATE_KEYS = frozenset({"text", "prompt", "message"})


def _truncate_image_data_for_log(obj: Any, parent_key: str | None = None) -> Any:
    """Recursively replace long base64 strings with placeholders for safe logging."""
    if isinstance(obj, dict):
        return {k: _truncate_image_data_for_log(v, k) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_truncate_image_data_for_log(v, None) for v in obj]
    if isinstance(obj, str) and len(obj) >= _DEBUG_TRUNCATE_THRESHOLD:
        if parent_key in _DEBUG_NEVER_TRUNCATE_KEYS:
            return obj
        return f"<string, {len(obj)} chars>"
    return obj


def _api_error_message(response: requests.Response) -> str:
    """Return error.message from a Google API error body, or the raw text."""
    try:
        body = response.json()
    except ValueError:
        return response.text.strip()
    if isinstance(body, dict):
        err = body.get("error")
        if isinstance(err, dict) and err.get("message"):
            return str(err["message"])
    return response.text.strip()


def _raise_for_status(response: requests.Response, model: str) -> None:
    """Map non-200 responses to ServiceError with a message fit for display."""
    status = response.status_code
    if status == 200:
        return
    if status in (401, 403):
        raise ServiceError(
            "Authentication failed. Please check your Gemini API key.",
            status_code=status,
            response=response.text,
        )
    if status == 404:
        raise ServiceError(
            f"Model not found or endpoint unavailable: {model}",
            status_code=404,
            response=response.text,
        )
    if status == 429:
        raise ServiceError(
            "Rate limit exceeded. Please wait before making more requests.",
            status_code=429,
            response=response.text,
        )
    if status >= 500:
        raise ServiceError(
            f"Image service error: {status}",
            status_code=status,
            response=response.text,
        )
    detail = _api_error_message(response) or "no details"
    raise ServiceError(
        f"API request failed with status {status}: {detail}",
        status_code=status,
        response=response.text,
    )


def _build_predict_payload(prompt: str, aspect_ratio: AspectRatio) -> dict[str, Any]:
    """Build the Imagen predict payload for a text-only prompt."""
    return {
        "instances": [{"prompt": prompt}],
        "parameters": {"sampleCount": 1, "aspectRatio": aspect_ratio.value},
    }


def _build_edit_payload(prompt: str, image: ReferenceImage) -> dict[str, Any]:
    """Build the Gemini generateContent payload for a prompt with an uploaded image."""
    return {
        "contents": [
            {
                "parts": [
                    {"inlineData": {"mimeType": image.mime_type, "data": image.b64}},
                    {"text": prompt},
                ]
            }
        ],
        "generationConfig": {"responseModalities": ["IMAGE", "TEXT"]},
    }


def _parse_predict_response(result: Any) -> str:
    """Extract a data URL from an Imagen predict response. Raises ServiceError on bad shape."""
    try:
        predictions = result.get("predictions") or []
        if not predictions:
            raise ServiceError(
                "No image was generated. The prompt may have been blocked by safety filters.",
                response=str(_truncate_image_data_for_log(result)),
            )
        first = predictions[0]
        b64 = first.get("bytesBase64Encoded", "")
        if not b64:
            raise ServiceError(
                "No image data in response",
                response=str(_truncate_image_data_for_log(result)),
            )
        return create_image_data_url(b64, mime_type=first.get("mimeType") or "image/png")
    except (AttributeError, IndexError, TypeError) as e:
        raise ServiceError(
            f"Failed to extract image from API response: {str(e)}",
            response=str(_truncate_image_data_for_log(result)),
        ) from e


def _parse_generate_content_response(result: Any) -> str:
    """Extract a data URL from a generateContent response. Raises ServiceError on bad shape."""
    texts: list[str] = []
    try:
        candidates = result.get("candidates") or []
        for candidate in candidates:
            parts = (candidate.get("content") or {}).get("parts") or []
            for part in parts:
                inline = part.get("inlineData") or part.get("inline_data")
                if inline and inline.get("data"):
                    mime = inline.get("mimeType") or inline.get("mime_type") or "image/png"
                    return create_image_data_url(inline["data"], mime_type=mime)
                if part.get("text"):
                    texts.append(part["text"].strip())
    except (AttributeError, TypeError) as e:
        raise ServiceError(
            f"Failed to extract image from API response: {str(e)}",
            response=str(_truncate_image_data_for_log(result)),
        ) from e
    if texts:
        raise ServiceError(
            "The model did not return an image. It said: " + " ".join(texts),
            response=str(_truncate_image_data_for_log(result)),
        )
    raise ServiceError(
        "No images in API response. The request may have been blocked by safety filters.",
        response=str(_truncate_image_data_for_log(result)),
    )


def _do_request(
    url: str,
    headers: dict[str, str],
    payload: dict[str, Any],
    timeout: int,
    model: str,
    debug: bool,
) -> Any:
    """POST the payload and return the decoded JSON body. Maps status codes to exceptions."""
    logger.debug(
        "API request url=%s model=%s timeout=%s key=%s",
        url,
        model,
        timeout,
        mask_secret(headers.get("x-goog-api-key", "")),
    )
    if debug:
        logger.info(
            "API request payload (image data truncated): %s",
            json.dumps(_truncate_image_data_for_log(payload), indent=2, default=str),
        )
    start_time = time.time()
    response = requests.post(url, headers=headers, json=payload, timeout=timeout)
    elapsed = time.time() - start_time
    logger.debug(
        "API response status=%s content_type=%s time=%.2fs",
        response.status_code,
        response.headers.get("content-type", ""),
        elapsed,
    )
    _raise_for_status(response, model)
    try:
        result = response.json()
    except ValueError as e:
        raise ServiceError(
            f"Failed to parse API response as JSON: {str(e)}",
            response=response.text,
        ) from e
    if debug:
        logger.info(
            "API response (image data truncated): %s",
            json.dumps(_truncate_image_data_for_log(result), indent=2, default=str),
        )
    return result


def generate(
    prompt: str,
    aspect_ratio: AspectRatio | str,
    image: ReferenceImage | None = None,
    *,
    config: Config | None = None,
    timeout: int | None = None,
) -> str:
    """
    Generate an image and return it as a data URL.

    Args:
        prompt: Final prompt text (style already appended)
        aspect_ratio: Output aspect ratio; only honored for text-only prompts
        image: Optional uploaded image to edit or draw from
        config: Optional config to use; if None, uses shared config from get_config()
        timeout: Optional timeout in seconds (defaults to config value)

    Returns:
        data: URL of the generated image

    Raises:
        ValidationError: If inputs are invalid or the API key is missing
        ServiceError: If the API call fails or returns an unexpected payload
        NetworkError: If the service cannot be reached
        RequestTimeoutError: If the request times out
    """
    if (not prompt or not prompt.strip()) and image is None:
        raise ValidationError("Prompt cannot be empty", field="prompt")

    ratio = AspectRatio.parse(aspect_ratio)
    config = config or get_config()
    if not config.gemini_api_key:
        raise ValidationError(
            "Gemini API key is required. Set it via config or environment variable.",
            field="api_key",
        )
    if timeout is None:
        timeout = config.generation_timeout

    if image is None:
        model = config.text_model
        url = f"{config.gemini_base_url}/models/{model}:predict"
        payload = _build_predict_payload(prompt, ratio)
    else:
        model = config.edit_model
        url = f"{config.gemini_base_url}/models/{model}:generateContent"
        payload = _build_edit_payload(prompt, image)
    headers = {
        "x-goog-api-key": config.gemini_api_key,
        "Content-Type": "application/json",
    }

    logger.info(
        "Generating image model=%s aspect_ratio=%s has_image=%s",
        model,
        ratio.value,
        image is not None,
    )
    if log_prompts():
        truncated = prompt if len(prompt) <= _PROMPT_LOG_MAX else prompt[:_PROMPT_LOG_MAX] + "..."
        logger.info("Prompt (used): %s", truncated)

    start_time = time.time()
    try:
        result = _do_request(url, headers, payload, timeout, model, config.debug_api)
    except requests.exceptions.Timeout as e:
        raise RequestTimeoutError(
            f"Request timed out after {timeout} seconds. "
            "The generation may be taking longer than expected."
        ) from e
    except requests.exceptions.ConnectionError as e:
        raise NetworkError(
            "Failed to connect to the image service. Please check your internet connection.",
            original_error=e,
        ) from e
    except requests.exceptions.RequestException as e:
        raise NetworkError(f"Network error during API request: {str(e)}", original_error=e) from e

    if image is None:
        data_url = _parse_predict_response(result)
    else:
        data_url = _parse_generate_content_response(result)
    logger.info("Generated in %.1fs model=%s", time.time() - start_time, model)
    return data_url
