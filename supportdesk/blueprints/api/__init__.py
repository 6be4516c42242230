from flask import Blueprint

api_bp = Blueprint("api", __name__)

# Import route modules to register their endpoints
from . import submit      # noqa: E402,F401
from . import support_requests  # noqa: E402,F401
from . import messages    # noqa: E402,F401
from . import tokens      # noqa: E402,F401
