import logging
import os
import random
import shutil
import time
from typing import Optional
from urllib.parse import urlparse

import httpx

from storage.base import FileStore
from config.settings import settings, StorageConfig

logger = logging.getLogger(__name__)


class LocalFileStore(FileStore):
    """
    Implements FileStore using the local disk.
    - Stores raw uploaded PDFs under a unique, collision-free name.
    - Can also fetch http(s) locators, so documents hosted elsewhere can be ingested.
    """

    def __init__(self, config: Optional[StorageConfig] = None, uploads_path: Optional[str] = None):
        self.config = config or settings.storage
        self.uploads_path = os.path.abspath(uploads_path or self.config.uploads_path)
        os.makedirs(self.uploads_path, exist_ok=True)

    def save_upload(self, filename: str, file_bytes: bytes) -> str:
        # file-<millis>-<random>-<original name>, basename only
        safe_name = os.path.basename(filename or "upload.pdf").replace(" ", "_")
        unique_suffix = f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}"
        path = os.path.join(self.uploads_path, f"file-{unique_suffix}-{safe_name}")
        with open(path, "wb") as f:
            f.write(file_bytes)
        return path

    def fetch(self, source_ref: str, dest_path: str) -> str:
        if urlparse(source_ref).scheme in ("http", "https"):
            with httpx.Client(timeout=self.config.download_timeout, follow_redirects=True) as client:
                with client.stream("GET", source_ref) as response:
                    response.raise_for_status()
                    with open(dest_path, "wb") as f:
                        for block in response.iter_bytes():
                            f.write(block)
            return dest_path

        if not os.path.exists(source_ref):
            raise FileNotFoundError(f"Source file not found: {source_ref}")
        shutil.copyfile(source_ref, dest_path)
        return dest_path

    def delete(self, source_ref: str) -> None:
        if urlparse(source_ref).scheme in ("http", "https"):
            raise ValueError(f"Cannot delete remote file from local store: {source_ref}")

        path = os.path.abspath(source_ref)
        if os.path.commonpath([path, self.uploads_path]) != self.uploads_path:
            raise ValueError(f"Refusing to delete file outside uploads directory: {source_ref}")
        if os.path.exists(path):
            os.remove(path)
            logger.info(f"Deleted origin file {path}")
