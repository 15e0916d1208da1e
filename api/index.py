"""
Serverless function handler wrapping the FastAPI app.
"""

from mangum import Mangum

from dynamic_forms.config import config
from dynamic_forms.main import app

# Wrap FastAPI app with Mangum for AWS Lambda/Vercel compatibility
handler = Mangum(app, lifespan="off", api_gateway_base_path=config["api_base_path"])
