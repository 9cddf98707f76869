"""
Authentication Service

Handles user registration, login, password hashing and JWT token management,
with users kept in the ``users`` collection of the JSON store.
"""

import datetime
from typing import Any, Dict, Optional

import bcrypt
import jwt

from ..config.game_settings import level_for_xp
from ..models.user import User
from ..store.json_store import JsonStore
from ..utils.helpers import generate_id, public_user, utc_now, utc_now_iso

# Profile fields a user may edit on their own record
EDITABLE_PROFILE_FIELDS = ('profileColor', 'profilePicture', 'email')


class AuthService:
    """
    Authentication service for handling user registration, login, and token management.
    """

    def __init__(self, store: JsonStore, jwt_secret: str, token_days: int = 7, bcrypt_rounds: int = 12):
        """
        Args:
            store: Shared JSON store
            jwt_secret: Secret key for JWT token generation
            token_days: Token lifetime in days
            bcrypt_rounds: bcrypt cost factor
        """
        self.store = store
        self.jwt_secret = jwt_secret
        self.token_days = token_days
        self.bcrypt_rounds = bcrypt_rounds

    def hash_password(self, password: str) -> str:
        """
        Hash a password using bcrypt.

        Args:
            password: Plain text password

        Returns:
            Hashed password as string
        """
        salt = bcrypt.gensalt(rounds=self.bcrypt_rounds)
        hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
        return hashed.decode('utf-8')

    def verify_password(self, password: str, hashed_password: str) -> bool:
        """
        Verify a password against its hash.

        Args:
            password: Plain text password
            hashed_password: Stored hashed password

        Returns:
            True if password matches, False otherwise
        """
        return bcrypt.checkpw(password.encode('utf-8'), hashed_password.encode('utf-8'))

    def create_token(self, user: Dict[str, Any]) -> str:
        token_payload = {
            "id": user["id"],
            "username": user["username"],
            "exp": utc_now() + datetime.timedelta(days=self.token_days)
        }
        return jwt.encode(token_payload, self.jwt_secret, algorithm="HS256")

    @staticmethod
    def _find_by_username(data: Dict[str, Any], username: str) -> Optional[Dict[str, Any]]:
        wanted = username.strip().lower()
        for user in data['users']:
            if user.get('username', '').lower() == wanted:
                return user
        return None

    def register_user(self, username: str, password: str, email: Optional[str] = None) -> Dict[str, Any]:
        """
        Register a new user.

        Args:
            username: User's chosen username, unique ignoring case
            password: User's chosen password
            email: Optional contact address

        Returns:
            Dictionary with success status, public user and token, or error
        """
        if not username or not password:
            return {"success": False, "error": "Username and password are required"}

        username = username.strip()
        if len(username) < 3:
            return {"success": False, "error": "Username must be at least 3 characters long"}

        if len(password) < 6:
            return {"success": False, "error": "Password must be at least 6 characters long"}

        hashed_password = self.hash_password(password)

        with self.store.transaction() as data:
            if self._find_by_username(data, username):
                return {"success": False, "error": "Username already exists"}

            user = User(
                id=generate_id('user'),
                username=username,
                password=hashed_password,
                email=email or None,
                createdAt=utc_now_iso(),
            ).to_dict()
            data['users'].append(user)

        return {
            "success": True,
            "message": "User registered successfully",
            "user": public_user(user),
            "token": self.create_token(user)
        }

    def login_user(self, username: str, password: str) -> Dict[str, Any]:
        """
        Authenticate a user and generate JWT token.

        Args:
            username: User's username (any case)
            password: User's password

        Returns:
            Dictionary with success status and JWT token or error
        """
        if not username or not password:
            return {"success": False, "error": "Username and password are required"}

        with self.store.snapshot() as data:
            user = self._find_by_username(data, username)
            user = dict(user) if user else None

        if not user or not self.verify_password(password, user.get("password", "")):
            return {"success": False, "error": "Invalid username or password"}

        return {
            "success": True,
            "token": self.create_token(user),
            "user": public_user(user)
        }

    def verify_token(self, token: str) -> Dict[str, Any]:
        """
        Verify and decode a JWT token and check the user still exists.

        Args:
            token: JWT token string

        Returns:
            Dictionary with success status and user data or error
        """
        if not token:
            return {"success": False, "error": "Token is required"}

        try:
            payload = jwt.decode(token, self.jwt_secret, algorithms=["HS256"])
        except jwt.ExpiredSignatureError:
            return {"success": False, "error": "Token has expired"}
        except jwt.InvalidTokenError:
            return {"success": False, "error": "Invalid token"}

        user_id = payload.get("id")
        if not user_id:
            return {"success": False, "error": "Invalid token payload"}

        user = self.get_user_by_id(user_id)
        if not user:
            return {"success": False, "error": "User not found"}

        return {
            "success": True,
            "user": {
                "id": user["id"],
                "username": user["username"]
            }
        }

    def get_user_by_id(self, user_id: str) -> Optional[Dict[str, Any]]:
        """
        Get public user data by user ID.

        Args:
            user_id: User's unique identifier

        Returns:
            User data dictionary or None if not found
        """
        with self.store.snapshot() as data:
            for user in data['users']:
                if user.get('id') == user_id:
                    return public_user(user)
        return None

    def update_profile(self, user_id: str, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Apply profile edits. Only EDITABLE_PROFILE_FIELDS are taken from
        ``updates``; XP, level and password cannot be changed here.

        Returns:
            Updated public user, or None if the user does not exist
        """
        with self.store.transaction() as data:
            for user in data['users']:
                if user.get('id') == user_id:
                    for key in EDITABLE_PROFILE_FIELDS:
                        if key in updates:
                            user[key] = updates[key]
                    user['level'] = level_for_xp(user.get('xp') or 0)
                    return public_user(user)
        return None


# Global service instance
_auth_service = None


def get_auth_service() -> Optional[AuthService]:
    """Get the global auth service instance."""
    return _auth_service


def initialize_auth_service(store: JsonStore, jwt_secret: str, **kwargs) -> AuthService:
    """Initialize the global auth service instance."""
    global _auth_service
    _auth_service = AuthService(store, jwt_secret, **kwargs)
    return _auth_service
