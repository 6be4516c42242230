from .token import ClientToken
from .support import SupportRequest, Message, RequestImage
