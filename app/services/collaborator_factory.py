"""Production collaborator bundle, built per request from cached SDK clients."""

from functools import lru_cache

import boto3

from app.core.collaborators import Collaborators
from app.core.config import get_settings
from app.core.embeddings import OpenAIEmbedder
from app.db.knowledge_bases import SupabaseMetadataStore
from app.services.generative_model import AnthropicGenerativeModel
from app.services.identity import SupabaseIdentityProvider
from app.services.object_storage import S3ObjectStorage
from app.services.perception import RekognitionPerceptionService
from app.services.speech import TranscribeSpeechService


@lru_cache(maxsize=None)
def _aws_client(service_name: str, region_name: str):
    """boto3 clients are thread-safe connection handles; build each once."""
    return boto3.client(service_name, region_name=region_name)


def get_collaborators() -> Collaborators:
    """Build the production collaborator bundle for one request."""
    settings = get_settings()
    region = settings.AWS_REGION

    return Collaborators(
        identity=SupabaseIdentityProvider(),
        metadata=SupabaseMetadataStore(
            scope_table=settings.KNOWLEDGE_BASE_TABLE,
            content_table=settings.CONTENT_TABLE,
        ),
        storage=S3ObjectStorage(
            bucket=settings.CONTENT_BUCKET,
            region_name=region,
            s3_client=_aws_client("s3", region),
        ),
        model=AnthropicGenerativeModel(
            api_key=settings.ANTHROPIC_API_KEY,
            model=settings.ANTHROPIC_MODEL,
            temperature=settings.ANTHROPIC_TEMPERATURE,
        ),
        perception=RekognitionPerceptionService(
            rekognition_client=_aws_client("rekognition", region),
        ),
        speech=TranscribeSpeechService(
            output_bucket=settings.TRANSCRIPT_BUCKET or settings.CONTENT_BUCKET,
            language_code=settings.TRANSCRIBE_LANGUAGE_CODE,
            max_speakers=settings.TRANSCRIBE_MAX_SPEAKERS,
            transcribe_client=_aws_client("transcribe", region),
        ),
        embedder=OpenAIEmbedder(),
    )
