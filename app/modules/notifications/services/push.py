"""Firebase Cloud Messaging push delivery"""
import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Optional

import firebase_admin
from firebase_admin import credentials, messaging

logger = logging.getLogger("app")


class PushSender:
    """Sends push notifications to a single device token; failures are logged, never raised"""

    def __init__(self, service_account_path: str):
        self.service_account_path = service_account_path
        self.firebase_app: Optional[firebase_admin.App] = None
        self._init_lock = threading.Lock()
        self.executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="push")

    def initialize(self) -> bool:
        """Initialize the Firebase app once; returns whether push is available"""
        if self.firebase_app is not None:
            return True

        with self._init_lock:
            if self.firebase_app is not None:
                return True
            try:
                if os.path.exists(self.service_account_path):
                    cred = credentials.Certificate(self.service_account_path)
                    self.firebase_app = firebase_admin.initialize_app(cred, name="push")
                    logger.info(f"Firebase initialized with service account from {self.service_account_path}")
                else:
                    self.firebase_app = firebase_admin.initialize_app(name="push")
                    logger.warning("Firebase initialized without explicit credentials")
                return True
            except Exception as e:
                logger.error(f"Failed to initialize Firebase: {e}")
                return False

    def send(self, token: str, title: str, body: str, data: Optional[Dict[str, str]] = None) -> bool:
        if not token:
            return False
        if not self.initialize():
            logger.warning("Push notification skipped: Firebase not initialized")
            return False

        message = messaging.Message(
            token=token,
            notification=messaging.Notification(title=title, body=body),
            data={k: str(v) for k, v in (data or {}).items()},
        )
        try:
            message_id = messaging.send(message, app=self.firebase_app)
            logger.info(f"Push notification sent: {message_id}")
            return True
        except Exception as e:
            logger.error(f"Failed to send push notification: {e}")
            return False

    def dispatch(self, token: Optional[str], title: str, body: str, data: Optional[Dict[str, str]] = None) -> None:
        """Queue a push without waiting for delivery"""
        if not token:
            return
        self.executor.submit(self.send, token, title, body, data)

    def shutdown(self) -> None:
        self.executor.shutdown(wait=False)
