import os

API_KEY = os.getenv("AZOPENAI_API_KEY", "")
RESOURCE_NAME = os.getenv("AZOPENAI_RESOURCE_NAME", "")

# ----------------------------------------------------------------------
# Deployment names as configured in the Azure portal.
# ----------------------------------------------------------------------
CHAT_DEPLOYMENT = os.getenv("AZOPENAI_CHAT_DEPLOYMENT", "gpt-35-turbo")
COMPLETIONS_DEPLOYMENT = os.getenv("AZOPENAI_COMPLETIONS_DEPLOYMENT", "text-davinci-003")
EMBEDDINGS_DEPLOYMENT = os.getenv(
    "AZOPENAI_EMBEDDINGS_DEPLOYMENT", "text-embedding-ada-002"
)
