import hashlib
import json
import logging
import os
import random
import threading
import time
from flask import Flask, Response, jsonify, request

from schema_server.logging import setup_logging

from .config import (
    SOURCE_SCHEMA_FILE, SOURCE_RELOAD_SEC, FAULT_500_PCT, FAULT_SLOW_MS,
    BIND_HOST, PORT, LOG_LEVEL
)
from .sample import sample_schema

class SchemaDocument:
    """The published document, pre-encoded, with an ETag derived from its content."""
    def __init__(self, body: bytes, mtime: float | None):
        self.body = body
        self.mtime = mtime
        self.etag = '"' + hashlib.sha1(body).hexdigest()[:16] + '"'
        self.loaded_ms = int(time.time() * 1000)

def load_document(path: str | None) -> SchemaDocument:
    if path is None:
        return SchemaDocument(json.dumps(sample_schema()).encode("utf-8"), None)
    with open(path, "rb") as fh:
        body = fh.read()
    json.loads(body)  # refuse to publish a document that is not valid JSON
    return SchemaDocument(body, os.path.getmtime(path))

class SchemaSource:
    def __init__(self, path: str | None, reload_sec: int):
        self.path = path
        self.reload_sec = reload_sec
        self._lock = threading.Lock()
        self._doc = load_document(path)
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def document(self) -> SchemaDocument:
        with self._lock:
            return self._doc

    def reload_if_changed(self) -> bool:
        """Reload the file when its mtime moved; keep serving the old document on errors."""
        log = logging.getLogger(__name__)
        if self.path is None:
            return False
        try:
            mtime = os.path.getmtime(self.path)
            if mtime == self.document.mtime:
                return False
            doc = load_document(self.path)
        except (OSError, ValueError) as e:
            log.error(
                "reload failed",
                extra={"event": "source.reload", "extra_fields": {"path": self.path, "error": repr(e)}},
            )
            return False
        with self._lock:
            self._doc = doc
        log.info(
            "document reloaded",
            extra={"event": "source.reload", "extra_fields": {
                "path": self.path,
                "etag": doc.etag,
                "bytes": len(doc.body),
            }},
        )
        return True

    def _reload_loop(self):
        """Background loop that checks the document file every reload_sec."""
        while not self._stop.is_set():
            self._stop.wait(self.reload_sec)
            self.reload_if_changed()

    def start(self):
        if self.path is None or self._thread is not None:
            return
        self._thread = threading.Thread(target=self._reload_loop, daemon=True)
        self._thread.start()

    def stop(self):
        self._stop.set()

def create_app(path: str | None = SOURCE_SCHEMA_FILE, *, fault_500_pct: int = FAULT_500_PCT,
               fault_slow_ms: int = FAULT_SLOW_MS) -> Flask:
    setup_logging("schema-source", LOG_LEVEL)
    app = Flask(__name__)

    source = SchemaSource(path, SOURCE_RELOAD_SEC)
    source.start()
    app.extensions["schema_source"] = source

    @app.get("/schema")
    def schema():
        log = logging.getLogger(__name__)
        t0 = time.time()

        # Fault injection: occasional 500 or jitter delay
        if fault_500_pct > 0 and random.randint(1, 100) <= fault_500_pct:
            if fault_slow_ms > 0:
                time.sleep(fault_slow_ms / 1000.0)
            log.warning(
                "injecting 500",
                extra={"event": "source.inject_fault", "extra_fields": {"fault": "500"}},
            )
            return jsonify({"error": "injected failure"}), 500

        if fault_slow_ms > 0 and random.random() < 0.2:
            # Delay ~20% of requests to simulate jitter
            time.sleep(fault_slow_ms / 1000.0)

        doc = source.document
        if request.headers.get("If-None-Match") == doc.etag:
            resp = Response(status=304)
        else:
            resp = Response(doc.body, mimetype="application/json")
        resp.headers["ETag"] = doc.etag
        resp.headers["Cache-Control"] = "no-store"

        log.info(
            "serve /schema",
            extra={"event": "http.access", "extra_fields": {
                "path": "/schema",
                "status": resp.status_code,
                "latency_ms": int((time.time() - t0) * 1000),
                "bytes_sent": len(doc.body) if resp.status_code == 200 else 0,
                "etag": doc.etag,
            }},
        )
        return resp

    @app.get("/health")
    def health():
        doc = source.document
        return {"ok": True, "etag": doc.etag, "loaded_ms": doc.loaded_ms}

    return app

if __name__ == "__main__":
    # Dev run: python -m schema_source.app
    create_app().run(host=BIND_HOST, port=PORT)
