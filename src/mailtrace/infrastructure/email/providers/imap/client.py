from __future__ import annotations
import imaplib
from dataclasses import dataclass
from typing import Optional

from loguru import logger

from mailtrace.application.ports.email_source import EmailSource, RawEmail
from mailtrace.infrastructure.settings import Settings

IMAP_TIMEOUT_SECONDS = 15.0


@dataclass
class ImapConfig:
    host: str
    user: str
    password: str
    port: int = 993
    tls: bool = True
    folder: str = "INBOX"
    subject_prefix: str = "ANALYZER-TEST"

    @classmethod
    def from_settings(cls, settings: Settings) -> "ImapConfig":
        if not settings.imap_enabled:
            raise ValueError("IMAP_HOST, IMAP_USER and IMAP_PASSWORD must all be set")
        return cls(
            host=settings.imap_host,
            user=settings.imap_user,
            password=settings.imap_password.get_secret_value(),
            port=settings.imap_port,
            tls=settings.imap_tls,
            folder=settings.imap_folder,
            subject_prefix=settings.test_subject_prefix,
        )


class ImapEmailSource(EmailSource):
    """Fetches test messages (subject starts with the configured prefix) over IMAP."""

    def __init__(self, cfg: ImapConfig) -> None:
        self.cfg = cfg
        self._conn: Optional[imaplib.IMAP4] = None

    @property
    def account(self) -> str:
        return self.cfg.user

    @property
    def is_connected(self) -> bool:
        return self._conn is not None

    def _connect(self) -> imaplib.IMAP4:
        if self._conn is None:
            if self.cfg.tls:
                conn = imaplib.IMAP4_SSL(self.cfg.host, self.cfg.port, timeout=IMAP_TIMEOUT_SECONDS)
            else:
                conn = imaplib.IMAP4(self.cfg.host, self.cfg.port, timeout=IMAP_TIMEOUT_SECONDS)
            conn.login(self.cfg.user, self.cfg.password)
            logger.info(f"IMAP connection ready ({self.cfg.user}@{self.cfg.host})")
            self._conn = conn
        return self._conn

    def disconnect(self) -> None:
        if self._conn:
            try:
                self._conn.logout()
            except (imaplib.IMAP4.error, OSError) as e:
                logger.debug(f"IMAP logout failed: {e}")
            self._conn = None
            logger.info("IMAP connection ended")

    def search(self, unseen_only: bool = True) -> list[int]:
        """UIDs of test messages in the folder, oldest first."""
        conn = self._connect()

        typ, _ = conn.select(self.cfg.folder, readonly=False)
        if typ != "OK":
            raise RuntimeError(f"Failed to select folder {self.cfg.folder}")

        criteria = ["SUBJECT", f'"{self.cfg.subject_prefix}"']
        if unseen_only:
            criteria.insert(0, "UNSEEN")

        typ, uids_data = conn.uid("SEARCH", None, *criteria)
        if typ != "OK":
            raise RuntimeError("UID SEARCH failed")

        if not uids_data or not uids_data[0]:
            return []
        return [int(x) for x in uids_data[0].split()]

    def fetch(self, unseen_only: bool = True, limit: Optional[int] = None) -> list[RawEmail]:
        """Fetch test messages; ``limit`` keeps only the most recent N."""
        uids = self.search(unseen_only=unseen_only)
        if limit is not None:
            uids = uids[-limit:] if limit > 0 else []

        logger.info(f"Found {len(uids)} test emails in {self.cfg.folder}")

        conn = self._connect()
        results: list[RawEmail] = []
        for uid in uids:
            typ, msg_data = conn.uid("FETCH", str(uid), "(RFC822)")
            if typ != "OK" or not msg_data or not msg_data[0]:
                logger.warning(f"Fetch of UID {uid} returned nothing")
                continue

            results.append(
                RawEmail(
                    provider="imap",
                    account=self.cfg.user,
                    folder=self.cfg.folder,
                    uid=uid,
                    rfc822_bytes=msg_data[0][1],
                )
            )

        return results
