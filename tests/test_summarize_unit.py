"""Unit tests for Summarizer."""

import json
from unittest.mock import Mock, patch

import pytest
from botocore.exceptions import ClientError, NoCredentialsError

from rss_slack_bot.config import BedrockConfig
from rss_slack_bot.summarize import ANTHROPIC_VERSION, SummarizationError, Summarizer

NOVA_MODEL = "amazon.nova-micro-v1:0"


def bedrock_response(body: dict) -> dict:
    response = {"body": Mock()}
    response["body"].read.return_value = json.dumps(body)
    return response


class TestSummarizerUnit:
    """Unit tests for Summarizer against a mocked Bedrock client."""

    def test_anthropic_successful_response(self):
        config = BedrockConfig()

        with patch("boto3.client") as mock_boto_client:
            mock_client = Mock()
            mock_boto_client.return_value = mock_client
            mock_client.invoke_model.return_value = bedrock_response(
                {
                    "content": [
                        {"type": "text", "text": "  Lambda now supports containers.  "}
                    ]
                }
            )

            summarizer = Summarizer(config)
            result = summarizer.summarize(
                "Lambda containers", "AWS Lambda now supports...", "https://ex.com/1"
            )

        assert result == "Lambda now supports containers."
        mock_boto_client.assert_called_once_with(
            "bedrock-runtime", region_name="us-east-1"
        )

        kwargs = mock_client.invoke_model.call_args[1]
        assert kwargs["modelId"] == config.model_id
        body = json.loads(kwargs["body"])
        assert body["anthropic_version"] == ANTHROPIC_VERSION
        assert body["max_tokens"] == 1000
        prompt = body["messages"][0]["content"][0]["text"]
        assert "Lambda containers" in prompt
        assert "AWS Lambda now supports..." in prompt
        assert "200 characters" in prompt

    def test_nova_successful_response(self):
        config = BedrockConfig(model_id=NOVA_MODEL, region="eu-west-1")

        with patch("boto3.client") as mock_boto_client:
            mock_client = Mock()
            mock_boto_client.return_value = mock_client
            mock_client.invoke_model.return_value = bedrock_response(
                {
                    "output": {"message": {"content": [{"text": "Nova summary"}]}},
                    "usage": {"inputTokens": 10, "outputTokens": 5},
                }
            )

            summarizer = Summarizer(config)
            result = summarizer.summarize("Title", "Body", "https://ex.com/2")

        assert result == "Nova summary"
        body = json.loads(mock_client.invoke_model.call_args[1]["body"])
        assert body["inferenceConfig"]["maxTokens"] == 1000
        assert "anthropic_version" not in body

    def test_access_denied_raises_summarization_error(self):
        config = BedrockConfig()

        with patch("boto3.client") as mock_boto_client:
            mock_client = Mock()
            mock_boto_client.return_value = mock_client
            mock_client.invoke_model.side_effect = ClientError(
                {
                    "Error": {
                        "Code": "AccessDeniedException",
                        "Message": "User is not authorized to perform: bedrock:InvokeModel",
                    }
                },
                "InvokeModel",
            )

            summarizer = Summarizer(config)

            with pytest.raises(SummarizationError, match="AccessDeniedException"):
                summarizer.summarize("Title", "Body", "https://ex.com")

    def test_missing_credentials_raises_summarization_error(self):
        with patch("boto3.client") as mock_boto_client:
            mock_client = Mock()
            mock_boto_client.return_value = mock_client
            mock_client.invoke_model.side_effect = NoCredentialsError()

            summarizer = Summarizer(BedrockConfig())

            with pytest.raises(SummarizationError):
                summarizer.summarize("Title", "Body", "https://ex.com")

    def test_empty_response_raises_summarization_error(self):
        with patch("boto3.client") as mock_boto_client:
            mock_client = Mock()
            mock_boto_client.return_value = mock_client
            mock_client.invoke_model.return_value = bedrock_response({"content": []})

            summarizer = Summarizer(BedrockConfig())

            with pytest.raises(SummarizationError, match="Empty response"):
                summarizer.summarize("Title", "Body", "https://ex.com")

    def test_malformed_body_raises_summarization_error(self):
        with patch("boto3.client") as mock_boto_client:
            mock_client = Mock()
            mock_boto_client.return_value = mock_client
            response = {"body": Mock()}
            response["body"].read.return_value = "not json"
            mock_client.invoke_model.return_value = response

            summarizer = Summarizer(BedrockConfig())

            with pytest.raises(SummarizationError):
                summarizer.summarize("Title", "Body", "https://ex.com")

    def test_prompt_placeholder_for_empty_body(self):
        with patch("boto3.client"):
            summarizer = Summarizer(BedrockConfig(max_summary_chars=120))

        prompt = summarizer.build_prompt("Only a title", "", "")

        assert "(no body)" in prompt
        assert "120 characters" in prompt
