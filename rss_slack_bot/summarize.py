"""Summarization module using Amazon Bedrock."""

import json
import time

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .config import BedrockConfig
from .logging_config import create_execution_logger

ANTHROPIC_VERSION = "bedrock-2023-05-31"

PROMPT_TEMPLATE = """Summarize the following article concisely.

Title: {title}

Body:
{content}

Link: {link}

Keep the summary within {max_chars} characters and reply with the summary only."""


class SummarizationError(Exception):
    """Raised when a summary cannot be produced."""


class Summarizer:
    """Produces short article summaries with a Bedrock-hosted model."""

    def __init__(self, config: BedrockConfig, execution_id: str | None = None):
        """Initialize the summarizer with Bedrock configuration."""
        self.config = config
        self.logger = create_execution_logger("summarizer", execution_id)
        self.bedrock_client = boto3.client(
            "bedrock-runtime", region_name=self.config.region
        )
        self.logger.info(
            "Initialized Bedrock client",
            region=self.config.region,
            model_id=self.config.model_id,
        )

    @property
    def is_anthropic_model(self) -> bool:
        return "anthropic" in self.config.model_id.lower()

    def build_prompt(self, title: str, content: str, link: str) -> str:
        """Fill the prompt template; an empty body gets a placeholder."""
        return PROMPT_TEMPLATE.format(
            title=title,
            content=content or "(no body)",
            link=link,
            max_chars=self.config.max_summary_chars,
        )

    def build_request_body(self, prompt: str) -> dict:
        """Build the invoke_model body for the configured model family.

        Anthropic models use the Messages API; Amazon Nova models use the
        messages/inferenceConfig format.
        """
        if self.is_anthropic_model:
            return {
                "anthropic_version": ANTHROPIC_VERSION,
                "max_tokens": self.config.max_tokens,
                "messages": [
                    {"role": "user", "content": [{"type": "text", "text": prompt}]}
                ],
            }
        return {
            "messages": [{"role": "user", "content": [{"text": prompt}]}],
            "inferenceConfig": {
                "maxTokens": self.config.max_tokens,
                "temperature": 0.3,
            },
        }

    def extract_text(self, response_body: dict) -> str:
        """Pull the generated text out of a model response.

        Raises:
            SummarizationError: If the response carries no text
        """
        if self.is_anthropic_model:
            blocks = response_body.get("content") or []
            text = "".join(
                block.get("text", "") for block in blocks if block.get("type") == "text"
            )
        else:
            message = response_body.get("output", {}).get("message", {})
            blocks = message.get("content") or []
            text = "".join(block.get("text", "") for block in blocks)

        text = text.strip()
        if not text:
            raise SummarizationError(
                f"Empty response from model {self.config.model_id}; "
                f"keys: {list(response_body.keys())}"
            )
        return text

    def summarize(self, title: str, content: str, link: str) -> str:
        """Summarize one article.

        Args:
            title: Article title ("" when absent)
            content: Article body ("" when absent)
            link: Article link ("" when absent)

        Returns:
            Summary text

        Raises:
            SummarizationError: If Bedrock fails or returns no text
        """
        self.logger.info("Starting summarization", item_title=title)
        prompt = self.build_prompt(title, content, link)
        request_body = self.build_request_body(prompt)

        start_time = time.time()
        try:
            response = self.bedrock_client.invoke_model(
                modelId=self.config.model_id,
                body=json.dumps(request_body),
                contentType="application/json",
                accept="application/json",
            )
            response_body = json.loads(response["body"].read())
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            self.logger.error(
                f"Bedrock client error: {error_code}",
                item_title=title,
                error_code=error_code,
                error=str(e),
            )
            raise SummarizationError(
                f"Bedrock call failed for model {self.config.model_id}: {error_code}"
            ) from e
        except (BotoCoreError, ValueError, KeyError) as e:
            self.logger.error(
                f"Unexpected error calling Bedrock: {e}", item_title=title, error=str(e)
            )
            raise SummarizationError(f"Bedrock call failed: {e}") from e

        response_time_ms = int((time.time() - start_time) * 1000)
        summary = self.extract_text(response_body)

        self.logger.info(
            "Successfully generated summary",
            item_title=title,
            model=self.config.model_id,
            response_length=len(summary),
            response_time_ms=response_time_ms,
        )
        return summary
