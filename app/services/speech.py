"""Asynchronous speech transcription via AWS Transcribe."""

import boto3
from botocore.exceptions import ClientError

from app.core.collaborators import TranscriptionJob, TranscriptionStatus
from app.core.logging import get_logger

logger = get_logger(__name__)

_STATUS_MAP = {
    "QUEUED": TranscriptionStatus.IN_PROGRESS,
    "IN_PROGRESS": TranscriptionStatus.IN_PROGRESS,
    "COMPLETED": TranscriptionStatus.COMPLETED,
    "FAILED": TranscriptionStatus.FAILED,
}


class TranscribeSpeechService:
    """Starts and inspects Transcribe jobs."""

    def __init__(
        self,
        output_bucket: str,
        language_code: str = "en-US",
        max_speakers: int = 10,
        region_name: str = "us-east-1",
        transcribe_client=None,
    ):
        self.output_bucket = output_bucket
        self.language_code = language_code
        self.max_speakers = max_speakers
        self.client = transcribe_client or boto3.client("transcribe", region_name=region_name)

    def start_job(self, job_name: str, media_uri: str, media_format: str) -> TranscriptionJob:
        response = self.client.start_transcription_job(
            TranscriptionJobName=job_name,
            LanguageCode=self.language_code,
            Media={"MediaFileUri": media_uri},
            MediaFormat=media_format,
            OutputBucketName=self.output_bucket,
            Settings={
                "ShowSpeakerLabels": True,
                "MaxSpeakerLabels": self.max_speakers,
            },
        )
        logger.info(f"Started transcription job {job_name}", extra={"job_name": job_name})
        return self._to_job(response.get("TranscriptionJob") or {}, job_name)

    def get_job(self, job_name: str) -> TranscriptionJob | None:
        try:
            response = self.client.get_transcription_job(TranscriptionJobName=job_name)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") == "BadRequestException":
                # Transcribe reports unknown job names as BadRequest
                logger.info(f"Transcription job {job_name} not found")
                return None
            raise
        return self._to_job(response.get("TranscriptionJob") or {}, job_name)

    def _to_job(self, payload: dict, job_name: str) -> TranscriptionJob:
        raw_status = payload.get("TranscriptionJobStatus")
        status = _STATUS_MAP.get(raw_status, TranscriptionStatus.STARTED)
        return TranscriptionJob(
            job_name=payload.get("TranscriptionJobName") or job_name,
            status=status,
            transcript_uri=(payload.get("Transcript") or {}).get("TranscriptFileUri"),
            language=payload.get("LanguageCode") or self.language_code,
            failure_reason=payload.get("FailureReason"),
        )
