"""Image perception via AWS Rekognition."""

import boto3

from app.core.logging import get_logger

logger = get_logger(__name__)

MAX_LABELS = 10
MIN_LABEL_CONFIDENCE = 70


class RekognitionPerceptionService:
    """Text-in-image and label detection."""

    def __init__(self, region_name: str = "us-east-1", rekognition_client=None):
        self.client = rekognition_client or boto3.client("rekognition", region_name=region_name)

    def detect_text(self, image: bytes) -> list[str]:
        """Return detected LINE texts in reading order."""
        response = self.client.detect_text(Image={"Bytes": image})
        lines = [
            detection["DetectedText"]
            for detection in response.get("TextDetections", [])
            if detection.get("Type") == "LINE" and detection.get("DetectedText")
        ]
        logger.debug(f"Rekognition detected {len(lines)} text lines")
        return lines

    def detect_labels(self, image: bytes) -> list[str]:
        """Return label names (max 10, confidence >= 70)."""
        response = self.client.detect_labels(
            Image={"Bytes": image},
            MaxLabels=MAX_LABELS,
            MinConfidence=MIN_LABEL_CONFIDENCE,
        )
        labels = [label["Name"] for label in response.get("Labels", []) if label.get("Name")]
        logger.debug(f"Rekognition detected {len(labels)} labels")
        return labels
