# settings.py
import os

from dotenv import load_dotenv

load_dotenv()

# storage
STORAGE_BACKEND = os.getenv('STORAGE_BACKEND', 'pdp')
LOCAL_STORAGE_PATH = os.getenv('LOCAL_STORAGE_PATH', '.storage')
FILECOIN_PRIVATE_KEY = (os.getenv('FILECOIN_PRIVATE_KEY') or '').strip()
FILECOIN_NETWORK = os.getenv('FILECOIN_NETWORK', 'calibration')
PDP_SERVICE_URL = os.getenv('PDP_SERVICE_URL', 'https://pdp-test.thcloud.dev')
THCLOUD_API_BASE = os.getenv('THCLOUD_API_BASE', 'https://pdp-test.thcloud.dev')

# backend notifications
BACKEND_API_URL = (os.getenv('BACKEND_API_URL') or '').rstrip('/')
BACKEND_API_KEY = os.getenv('BACKEND_API_KEY', '')
BACKEND_NOTIFY_PATH = '/api/v1/internal/images'

HTTP_TIMEOUT = float(os.getenv('HTTP_TIMEOUT', '30'))
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()
