from .user import User
from .message import Message
from .password_reset import PasswordReset
