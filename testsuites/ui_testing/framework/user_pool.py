"""
================================================================================
Test User Pool
================================================================================

Hands out Practical Law test accounts so that two tests never sign in with
the same user at the same time (a second sign-in ends the first session).

    - Users come from the `test_users` section of the settings
    - In-process exclusivity through an in-memory assignment map
    - Cross-process exclusivity (pytest-xdist workers) through filelock
      lease files, one per user
    - Round-robin and per-test deterministic selection helpers

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import hashlib
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from filelock import FileLock, Timeout
from loguru import logger


class UserPoolError(Exception):
    """Raised when no suitable test user can be assigned."""
    pass


@dataclass
class TestUser:
    """A Practical Law test account and the test currently using it."""
    __test__ = False

    user_id: str
    username: str
    password: str
    assigned_test: Optional[str] = None

    @property
    def is_assigned(self) -> bool:
        return self.assigned_test is not None

    def __str__(self) -> str:
        return f"User: {self.user_id} ({self.username}) - Assigned to: {self.assigned_test or 'None'}"

    def __repr__(self) -> str:
        # Never leak the password into logs or assertion rewrites
        return f"TestUser(user_id={self.user_id!r}, username={self.username!r}, assigned_test={self.assigned_test!r})"


class TestUserPool:
    """
    Thread-safe pool of test users.

    Usage:
        >>> pool = TestUserPool.instance(config)
        >>> user = pool.get_available_user("test_login")
        >>> ...
        >>> pool.release_user(user.user_id)
    """
    __test__ = False

    _instance: Optional["TestUserPool"] = None

    def __init__(
        self,
        users: Mapping[str, Mapping[str, Any]],
        lock_dir: Optional[Path] = None,
    ):
        """
        Args:
            users: user id -> {"username": ..., "password": ...}
            lock_dir: Directory for cross-process lease files. In-process
                      exclusivity only when omitted.
        """
        self._users: Dict[str, TestUser] = {
            user_id: TestUser(
                user_id=user_id,
                username=str(data.get("username", "")),
                password=str(data.get("password", "")),
            )
            for user_id, data in users.items()
        }
        self._order: List[str] = list(self._users)
        self._lock = threading.Lock()
        self._counter = 0
        self._lock_dir = Path(lock_dir) if lock_dir else None
        self._leases: Dict[str, FileLock] = {}
        if self._lock_dir:
            self._lock_dir.mkdir(parents=True, exist_ok=True)
        logger.debug(f"Test user pool initialized with {len(self._users)} users")

    @classmethod
    def from_config(cls, config, lock_dir: Optional[Path] = None) -> "TestUserPool":
        """Build the pool from the `test_users` settings section."""
        return cls(config.get_section("test_users"), lock_dir=lock_dir)

    @classmethod
    def instance(cls, config=None, lock_dir: Optional[Path] = None) -> "TestUserPool":
        """
        Get the process-wide pool.

        Args:
            config: ConfigLoader instance (required on first call)
        """
        if cls._instance is None:
            if config is None:
                raise UserPoolError("TestUserPool.instance() needs a config on first use")
            cls._instance = cls.from_config(config, lock_dir=lock_dir)
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset singleton instance (for testing)."""
        if cls._instance:
            cls._instance.release_all()
        cls._instance = None

    # =========================================================================
    # Assignment
    # =========================================================================

    def _try_lease(self, user_id: str) -> bool:
        if self._lock_dir is None:
            return True
        lease = FileLock(str(self._lock_dir / f"{user_id}.lock"), timeout=0)
        try:
            lease.acquire()
        except Timeout:
            logger.debug(f"User {user_id} is leased by another worker")
            return False
        self._leases[user_id] = lease
        return True

    def _drop_lease(self, user_id: str) -> None:
        lease = self._leases.pop(user_id, None)
        if lease is not None:
            lease.release()

    def get_available_user(self, test_name: str) -> TestUser:
        """
        Assign the first free user to `test_name`.

        Raises:
            UserPoolError: when every user is in use
        """
        with self._lock:
            for user_id in self._order:
                user = self._users[user_id]
                if user.is_assigned or not self._try_lease(user_id):
                    continue
                user.assigned_test = test_name
                logger.info(f"Assigned user {user_id} to test: {test_name}")
                return user

        raise UserPoolError(
            f"No test users available for test: {test_name}. All users are currently in use."
        )

    def get_specific_user(self, user_id: str, test_name: str) -> TestUser:
        """
        Assign one particular user to `test_name`.

        Raises:
            UserPoolError: when the user is unknown or used by another test
        """
        with self._lock:
            user = self._users.get(user_id)
            if user is None:
                raise UserPoolError(f"User {user_id} not found in configuration")
            if user.assigned_test == test_name:
                return user
            if user.is_assigned or not self._try_lease(user_id):
                raise UserPoolError(f"User {user_id} is currently in use by another test")
            user.assigned_test = test_name
            logger.info(f"Assigned specific user {user_id} to test: {test_name}")
            return user

    def release_user(self, user_id: str) -> None:
        """Free a user. Unknown or already free users are ignored."""
        with self._lock:
            user = self._users.get(user_id)
            if user is None or not user.is_assigned:
                return
            logger.info(f"Released user {user_id} from test: {user.assigned_test}")
            user.assigned_test = None
            self._drop_lease(user_id)

    def release_all(self) -> None:
        for user_id in list(self._users):
            self.release_user(user_id)

    def get_available_user_ids(self) -> List[str]:
        with self._lock:
            return [uid for uid in self._order if not self._users[uid].is_assigned]

    def get_assigned_users(self) -> List[TestUser]:
        with self._lock:
            return [self._users[uid] for uid in self._order if self._users[uid].is_assigned]

    # =========================================================================
    # Round-robin helpers (no assignment bookkeeping)
    # =========================================================================

    @property
    def count(self) -> int:
        return len(self._order)

    def next_user(self) -> TestUser:
        """Next user in round-robin order."""
        if not self._order:
            raise UserPoolError("No test users configured")
        with self._lock:
            user = self._users[self._order[self._counter % len(self._order)]]
            self._counter += 1
        logger.debug(f"Round-robin selected user {user.user_id}")
        return user

    def user_by_index(self, index: int) -> TestUser:
        if index < 0 or index >= len(self._order):
            raise IndexError(
                f"User index {index} is out of range. Available users: 0-{len(self._order) - 1}"
            )
        return self._users[self._order[index]]

    def reset_counter(self) -> None:
        with self._lock:
            self._counter = 0

    def user_for_test(self, test_name: str) -> TestUser:
        """Same user for the same test name in every process and run."""
        if not self._order:
            raise UserPoolError("No test users configured")
        digest = hashlib.md5(test_name.encode("utf-8")).hexdigest()
        return self._users[self._order[int(digest, 16) % len(self._order)]]


__all__ = [
    "TestUser",
    "TestUserPool",
    "UserPoolError",
]
