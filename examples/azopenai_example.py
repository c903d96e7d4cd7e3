"""
Azure OpenAI client examples.

Set AZOPENAI_API_KEY and AZOPENAI_RESOURCE_NAME before running.
"""

from azopenai_lib import (
    AzOpenAIClient,
    Authorizer,
    CallContext,
    JSONServiceError,
)
from azopenai_lib.data_models.chat import ChatParams
from azopenai_lib.utils.logger import prepare_logger

from constants import (
    API_KEY,
    RESOURCE_NAME,
    CHAT_DEPLOYMENT,
    COMPLETIONS_DEPLOYMENT,
    EMBEDDINGS_DEPLOYMENT,
)


class AzOpenAIExamples:
    """
    Helper class that groups all example calls.
    Usage:
        examples = AzOpenAIExamples()
        examples.chat_example()
    """

    def __init__(self):
        self.client = AzOpenAIClient(
            RESOURCE_NAME,
            Authorizer(api_key=API_KEY),
            logger=prepare_logger("azopenai-examples"),
        )

    # ---------------------------
    # 1. Chat
    # ---------------------------
    def chat_example(self):
        chat = self.client.chat(CHAT_DEPLOYMENT)
        result = chat.call(
            [
                {"role": "system", "content": "You are a helpful assistant."},
                {
                    "role": "user",
                    "content": "Does Azure OpenAI support customer managed keys?",
                },
            ]
        )
        print(result.text[0])

    # ---------------------------
    # 2. Chat with default parameters
    # ---------------------------
    def chat_with_params_example(self):
        chat = self.client.chat(CHAT_DEPLOYMENT)
        params = ChatParams.defaults()
        params.max_tokens = 32
        params.temperature = 0.5
        chat.set_params(params)

        result = chat.call([{"role": "user", "content": "Tell me a joke"}])
        print(result.text[0])

    # ---------------------------
    # 3. Streaming chat
    # ---------------------------
    def streaming_example(self):
        chat = self.client.chat(CHAT_DEPLOYMENT)
        with CallContext(timeout=120) as ctx:
            stream = chat.stream(
                [{"role": "user", "content": "Write a short poem about the sea."}],
                ctx=ctx,
            )
            for chunk in stream.payloads():
                if chunk.choices:
                    print(chunk.choices[0].delta.content or "", end="", flush=True)
        print()

    # ---------------------------
    # 4. Completions
    # ---------------------------
    def completions_example(self):
        completions = self.client.completions(COMPLETIONS_DEPLOYMENT)
        result = completions.call(["The capital of California is"])
        print(result.text[0])

    # ---------------------------
    # 5. Embeddings
    # ---------------------------
    def embeddings_example(self):
        embeddings = self.client.embeddings(EMBEDDINGS_DEPLOYMENT)
        result = embeddings.call(
            ["The food was delicious and the waiter..."], remove_newlines=True
        )
        print(f"{len(result.results[0])} dimensions")

    # ---------------------------
    # 6. Error handling
    # ---------------------------
    def error_handling_example(self):
        try:
            self.client.chat("nonexistent-deployment").call(
                [{"role": "user", "content": "Test"}]
            )
        except JSONServiceError as e:
            print(f"HTTP {e.status_code}: {e.code}")


if __name__ == "__main__":
    examples = AzOpenAIExamples()
    examples.chat_example()
    examples.chat_with_params_example()
    examples.streaming_example()
    examples.completions_example()
    examples.embeddings_example()
    examples.error_handling_example()
