"""
Application state owned by the view/controller shell
"""

from dataclasses import dataclass, field
from typing import List, Optional

from user_directory.models.user import User


@dataclass
class DirectoryState:
    """In-memory user collection plus the flags the views render"""
    users: List[User] = field(default_factory=list)
    loaded: bool = False
    loading: bool = False
    error: Optional[str] = None
    notice: Optional[str] = None

    def dismiss_messages(self):
        self.error = None
        self.notice = None

    def reset(self):
        self.users.clear()
        self.loaded = False
        self.dismiss_messages()
