import os
from dotenv import load_dotenv
import logging

# Load environment variables from .env file
load_dotenv()

# RAG settings
# Number of articles to retrieve per query
DEFAULT_K = int(os.getenv("DEFAULT_K", 3))
# Characters of each article included in the LLM context
CONTEXT_CHAR_LIMIT = int(os.getenv("CONTEXT_CHAR_LIMIT", 500))
# Characters of the top article quoted by the template fallback
FALLBACK_CHAR_LIMIT = int(os.getenv("FALLBACK_CHAR_LIMIT", 150))

# Model settings
# Use smaller model optimized for instruction following
LLM_MODEL = os.getenv("LLM_MODEL", "microsoft/phi-2")
# Set to "false" to skip loading the local model and always answer from the template
LLM_ENABLED = os.getenv("LLM_ENABLED", "True").lower() == "true"

# LLM Generation settings
MAX_NEW_TOKENS = int(os.getenv("MAX_NEW_TOKENS", 256))
TEMPERATURE = float(os.getenv("TEMPERATURE", 0.7))
TOP_P = float(os.getenv("TOP_P", 0.9))
TOP_K = int(os.getenv("TOP_K", 50))
REPETITION_PENALTY = float(os.getenv("REPETITION_PENALTY", 1.2))

# LLM Configuration dictionary
LLM_CONFIG = {
    "temperature": TEMPERATURE,
    "top_p": TOP_P,
    "top_k": TOP_K,
    "repetition_penalty": REPETITION_PENALTY,
    "max_new_tokens": MAX_NEW_TOKENS,
    "do_sample": True,
    "pad_token_id": 50256  # Common pad token id for most models
}

# Embedding service settings (Jina)
JINA_API_KEY = os.getenv("JINA_API_KEY") or os.getenv("JINA_EMBEDDINGS_API_KEY")
JINA_MODEL = os.getenv("JINA_MODEL", "jina-embeddings-v2-base-en")
EMBEDDING_TIMEOUT = float(os.getenv("EMBEDDING_TIMEOUT", 60))

# Vector store settings (remote Chroma server or Chroma Cloud)
CHROMA_DB_URL = os.getenv("CHROMA_DB_URL", "").rstrip("/")
CHROMA_COLLECTION = os.getenv("CHROMA_COLLECTION", "news_articles")
CHROMA_API_KEY = os.getenv("CHROMA_API_KEY") or os.getenv("CHROMA_CLOUD_API_KEY")
CHROMA_TENANT = os.getenv("CHROMA_TENANT")
CHROMA_DATABASE = os.getenv("CHROMA_DATABASE")
VECTOR_DB_TIMEOUT = float(os.getenv("VECTOR_DB_TIMEOUT", 30))

# News ingestion settings
# Comma separated list of RSS feed URLs; overrides the built-in sources
NEWS_FEED_URLS = [u.strip() for u in os.getenv("NEWS_FEED_URLS", "").split(",") if u.strip()]
NEWS_SOURCES = [
    {"name": url, "url": url, "type": "rss"} for url in NEWS_FEED_URLS
] or [
    {"name": "BBC News", "url": "http://feeds.bbci.co.uk/news/rss.xml", "type": "rss"},
    {"name": "Reuters", "url": "http://feeds.reuters.com/reuters/topNews", "type": "rss"},
]
INGEST_LIMIT = int(os.getenv("INGEST_LIMIT", 30))
# Pause between article downloads so the news sites don't block us
FETCH_DELAY_SECONDS = float(os.getenv("FETCH_DELAY_SECONDS", 1.0))
HTTP_TIMEOUT = float(os.getenv("HTTP_TIMEOUT", 20))
USER_AGENT = os.getenv(
    "USER_AGENT",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36",
)

SERVICE_NAME = "News RAG Chatbot API"
SERVICE_VERSION = "1.0.0"

# Debug and Logging settings
DEBUG = os.getenv("DEBUG", "False").lower() == "true"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
# Configure logging format
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)
logger = logging.getLogger(__name__)


def vector_store_configured() -> bool:
    """The remote vector path needs both an embedding key and a Chroma endpoint."""
    return bool(JINA_API_KEY and CHROMA_DB_URL)


# Log key configurations
logger.info(f"LLM Model: {LLM_MODEL} (enabled={LLM_ENABLED})")
logger.info(f"Vector store: {'Chroma at ' + CHROMA_DB_URL if vector_store_configured() else 'disabled (lexical index only)'}")
logger.info(f"News sources: {', '.join(s['name'] for s in NEWS_SOURCES)}")
