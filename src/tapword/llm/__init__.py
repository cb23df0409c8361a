from .openai_client import DetectionMetadata, OpenAIDetectionClient

__all__ = ["DetectionMetadata", "OpenAIDetectionClient"]
