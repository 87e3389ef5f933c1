"""All magic numbers and configuration constants."""

MIN_SPEECH_MS = 3_000               # ms: accepted for future merging rules, not used by grouping
MAX_SPEECH_MS = 30_000              # ms: soft cap, split at the next sentence boundary
CRITICAL_MAX_SPEECH_MS = 90_000     # ms: hard cap, split even mid-sentence
MAX_GAP_MS = 5_000                  # ms: longer gaps get a group of their own
SENTENCE_ENDINGS = (".", "!", "?", ";", ")", "]")
CAPACITY_RETRY_COUNT = 10           # max attempts when the provider is out of capacity
CAPACITY_RETRY_DELAY = 10.0         # seconds: fixed delay between capacity retries
DURATION_TOLERANCE_MS = 100         # max allowed drift after a duration correction
SILENCE_FRAME_RATE = 44100          # Hz: silent fragments
OUTPUT_BITRATE = "192k"             # MP3 output bitrate
ATEMPO_MIN = 0.5                    # ffmpeg atempo accepts factors within [0.5, 2.0]
ATEMPO_MAX = 2.0
STRETCH_SKIP_RATIO = 0.001          # ratios this close to 1.0 are only padded/trimmed
DEFAULT_PROVIDER = "edge"
DEFAULT_WORKERS = 4                 # concurrent synthesis requests
ELEVENLABS_MODEL = "eleven_multilingual_v2"
ELEVENLABS_TIMEOUT = 120            # seconds per request
ELEVENLABS_URL = "https://api.elevenlabs.io/v1/text-to-speech/{voice_id}"
POLICIES = ("stretch", "normalize")
VERSION = "0.1.0"

EDGE_VOICE_MAP = {
    "en": "en-US-AndrewMultilingualNeural",
    "en-female": "en-US-AvaMultilingualNeural",
    "ru": "ru-RU-DmitryNeural",
    "ru-female": "ru-RU-SvetlanaNeural",
    "es": "es-ES-AlvaroNeural",
    "es-female": "es-ES-ElviraNeural",
    "pt": "pt-BR-AntonioNeural",
    "pt-female": "pt-BR-FranciscaNeural",
    "it": "it-IT-DiegoNeural",
    "it-female": "it-IT-ElsaNeural",
    "de": "de-DE-ConradNeural",
    "de-female": "de-DE-KatjaNeural",
    "tr": "tr-TR-AhmetNeural",
    "tr-female": "tr-TR-EmelNeural",
    "hi": "hi-IN-MadhurNeural",
    "id": "id-ID-ArdiNeural",
}

AZURE_VOICE_MAP = {
    "en": "en-US-AndrewMultilingualNeural",
    "en-female": "en-US-AvaMultilingualNeural",
    "ru": "ru-RU-DmitryNeural",
    "ru-female": "ru-RU-SvetlanaNeural",
    "es": "es-ES-AlvaroNeural",
    "es-female": "es-ES-ElviraNeural",
    "pt": "pt-BR-AntonioNeural",
    "pt-female": "pt-BR-FranciscaNeural",
    "it": "it-IT-DiegoNeural",
    "it-female": "it-IT-ElsaNeural",
    "de": "de-DE-ConradNeural",
    "de-female": "de-DE-KatjaNeural",
    "tr": "tr-TR-AhmetNeural",
    "tr-female": "tr-TR-EmelNeural",
}

ELEVENLABS_VOICE_MAP = {
    "en": "e5WNhrdI30aXpS2RSGm1",
    "en-luis": "WGINef1wh4Hi6O62bfO8",
    "en-oswald": "u9krpw4IqW8A8YKLvhYX",
    "ru": "txnCCHHGKmYIwrn7HfHQ",
    "es": "Nh2zY9kknu6z4pZy6FhD",
    "pt": "IlrWo5tGgTuxNTHyGhWD",
    "it": "13Cuh3NuYvWOVQtLbRN8",
    "de": "hucVGIVBVgfwHixla7pT",
    "tr": "YXfTfjS5baixEmJfseKO",
    "hi": "zT03pEAEi0VHKciJODfn",
    "id": "gP7FRCgEZ8Lr3rnyGgpw",
}
