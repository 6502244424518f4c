from pdf_compressor.config import DEFAULT_PORT, DEFAULT_PROCESSOR_TIMEOUT_SECONDS
from pdf_compressor.core.utils import env_int

# Same parsing, defaults and minimums as load_runtime_config.
port = env_int("PORT", DEFAULT_PORT, minimum=1)
processor_timeout = env_int("GS_TIMEOUT_SECONDS", DEFAULT_PROCESSOR_TIMEOUT_SECONDS, minimum=1)

bind = f"0.0.0.0:{port}"
workers = env_int("WEB_CONCURRENCY", 2, minimum=1)
threads = env_int("GUNICORN_THREADS", 4, minimum=1)
# Worker timeout must outlast the Ghostscript timeout so cleanup can run.
timeout = processor_timeout + 30
accesslog = "-"
errorlog = "-"
