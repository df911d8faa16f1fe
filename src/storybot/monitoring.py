"""Monitoring configuration for the bot."""
from prometheus_client import Counter, start_http_server

# Reading metrics
sentences_read = Counter(
    "storybot_sentences_read_total",
    "Total number of story sentences played",
    ["book_id"],
)

# Review metrics
answers_recorded = Counter(
    "storybot_answers_recorded_total",
    "Total number of flashcard answers recorded",
    ["outcome"],
)

words_mastered = Counter(
    "storybot_words_mastered_total",
    "Total number of words that reached the mastery threshold",
    ["book_id"],
)

# Error metrics
progress_save_errors = Counter(
    "storybot_progress_save_errors_total",
    "Total number of failed progress writes",
)

speech_errors = Counter(
    "storybot_speech_errors_total",
    "Total number of failed text-to-speech requests",
)


def start_monitoring(port: int = 9090) -> None:
    """Start the Prometheus metrics server."""
    start_http_server(port)
