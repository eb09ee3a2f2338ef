"""
Vercel entry point for the Response-Time Analytics API
"""
import sys
import os

# Add parent directory to path
parent_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if parent_dir not in sys.path:
    sys.path.insert(0, parent_dir)

# Serverless defaults
os.environ.setdefault("ENVIRONMENT", "production")
os.environ.setdefault("BUSINESS_HOURS_CONFIG_PATH", "/tmp/business_hours.yaml")

from mangum import Mangum
from src.main import app

# Lifespan must run: it wires the response-time service.
handler = Mangum(app, lifespan="auto")
