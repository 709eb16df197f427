"""Prompt builders for each content intelligence entry point.

Every builder truncates its excerpts before assembly and spells out the exact
JSON shape the model must return.
"""

from app.core.content_models import ContentCandidate, ModelPrompt

# Excerpt ceilings (characters)
SIMILARITY_EXCERPT_CHARS = 1000
QUERY_EXCERPT_CHARS = 3000
SUGGESTION_EXCERPT_CHARS = 2000
SUGGESTION_PEER_EXCERPT_CHARS = 500
ANALYSIS_EXCERPT_CHARS = 3000
IMAGE_TEXT_EXCERPT_CHARS = 2000

# Max files embedded as context for a direct query
MAX_QUERY_CONTEXT_ITEMS = 10


def truncate(text: str, limit: int) -> str:
    """Cut text to `limit` characters, marking the cut with an ellipsis."""
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


def build_query_prompt(query: str, context: list[ContentCandidate]) -> ModelPrompt:
    excerpts = tuple(
        f"File: {c.display_name}\nContent: {truncate(c.text, QUERY_EXCERPT_CHARS)}"
        for c in context[:MAX_QUERY_CONTEXT_ITEMS]
    )
    context_text = "\n\n".join(excerpts)
    schema = "Plain-text answer."

    instruction = f"""You are an AI assistant helping users query their personal knowledge base.

Context from user's files:
{context_text}

User Question: {query}

Please provide a helpful answer based on the content above. If the answer is not found in the provided content, say so clearly. Include specific references to the files when relevant.

Answer:"""

    return ModelPrompt(
        instruction_text=instruction,
        embedded_excerpts=excerpts,
        output_schema_description=schema,
    )


def build_similarity_prompt(query: str, text: str) -> ModelPrompt:
    excerpt = truncate(text, SIMILARITY_EXCERPT_CHARS)
    schema = """{
  "relevanceScore": 0.85,
  "snippet": "Most relevant excerpt from the content"
}"""

    instruction = f"""You are a semantic search engine. Calculate the relevance score (0.0 to 1.0) between the query and the content.

Query: "{query}"

Content: "{excerpt}"

Provide only a JSON response with:
{schema}

Be strict with scoring - only high relevance (0.7+) should be included.
The snippet must be copied from the content and be at most 200 characters."""

    return ModelPrompt(
        instruction_text=instruction,
        embedded_excerpts=(excerpt,),
        output_schema_description=schema,
    )


def build_suggestions_prompt(
    candidate: ContentCandidate,
    peers: list[ContentCandidate],
) -> ModelPrompt:
    excerpt = truncate(candidate.text, SUGGESTION_EXCERPT_CHARS)
    peer_excerpts = tuple(
        f"{p.display_name}: {truncate(p.text, SUGGESTION_PEER_EXCERPT_CHARS)}" for p in peers
    )
    peer_text = "\n\n".join(peer_excerpts) if peer_excerpts else "(no other content)"
    schema = """{
  "suggestions": [
    {
      "id": "suggestion-1",
      "type": "improvement",
      "title": "Add Executive Summary",
      "description": "Consider adding a brief executive summary at the beginning to help readers quickly understand the key points.",
      "confidence": 0.9
    },
    {
      "id": "suggestion-2",
      "type": "related_content",
      "title": "Link to Project Timeline",
      "description": "This content mentions project phases but could benefit from linking to a detailed timeline document.",
      "confidence": 0.8
    }
  ]
}"""

    instruction = f"""You are an AI assistant that provides intelligent suggestions for content improvement and related actions.

Current Content ({candidate.display_name}):
{excerpt}

Other Content in Knowledge Base:
{peer_text}

Please analyze this content and provide 3-5 intelligent suggestions for:
1. Content improvements (better structure, missing sections, clarity)
2. Related content that might be useful
3. Action items or next steps

Provide only a JSON response with this exact format:
{schema}

Types should be: "improvement", "related_content", or "action_item"
Confidence should be between 0.0 and 1.0
Be specific and actionable in your suggestions."""

    return ModelPrompt(
        instruction_text=instruction,
        embedded_excerpts=(excerpt, *peer_excerpts),
        output_schema_description=schema,
    )


def build_analysis_prompt(candidate: ContentCandidate) -> ModelPrompt:
    excerpt = truncate(candidate.text, ANALYSIS_EXCERPT_CHARS)
    schema = """{
  "summary": "A concise 2-3 sentence summary of the main points and purpose of this content.",
  "keywords": ["keyword1", "keyword2", "keyword3", "keyword4", "keyword5"],
  "sentiment": "positive|negative|neutral",
  "topics": ["topic1", "topic2", "topic3"]
}"""

    instruction = f"""You are an AI content analyst. Analyze the following content and provide insights.

Content ({candidate.display_name}):
{excerpt}

Please provide a comprehensive analysis in this exact JSON format:
{schema}

Guidelines:
- Summary: Capture the main purpose and key points
- Keywords: Extract 5 most important terms/concepts (no duplicates)
- Sentiment: Overall tone (positive, negative, or neutral)
- Topics: 3 main subject areas or themes
- Be objective and analytical
- Focus on content substance, not writing quality"""

    return ModelPrompt(
        instruction_text=instruction,
        embedded_excerpts=(excerpt,),
        output_schema_description=schema,
    )


def build_image_prompt(
    display_name: str,
    detected_objects: list[str],
    extracted_text: str,
) -> ModelPrompt:
    text_excerpt = truncate(extracted_text, IMAGE_TEXT_EXCERPT_CHARS)
    schema = """{
  "description": "A detailed description of what you see in the image",
  "objects": ["list", "of", "detected", "objects"],
  "text": "Any text content found in the image",
  "confidence": 0.95,
  "suggestions": [
    "Helpful suggestions for improving the image",
    "Additional context or recommendations"
  ]
}"""

    instruction = f"""You are an AI image analyst. Analyze this image and provide insights.

Image Information:
- File: {display_name}
- Detected Objects: {", ".join(detected_objects)}
- Extracted Text: {text_excerpt}

Please provide a comprehensive analysis in this exact JSON format:
{schema}

Guidelines:
- Description: Provide a clear, detailed description of the image content
- Objects: List all significant objects, elements, or features visible
- Text: Include any text content found in the image
- Confidence: Rate your confidence in the analysis (0.0 to 1.0)
- Suggestions: Provide 2-3 helpful suggestions for the user
- Be objective and analytical in your assessment"""

    return ModelPrompt(
        instruction_text=instruction,
        embedded_excerpts=(text_excerpt,),
        output_schema_description=schema,
    )
