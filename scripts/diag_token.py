from dotenv import load_dotenv
load_dotenv()
import sys
from datetime import datetime, timezone
from pathlib import Path
# Ensure project root is on sys.path so `sleephq_uploader` package can be imported
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))
from sleephq_uploader.auth import SleepHQAuth
from sleephq_uploader.config import load_config
from sleephq_uploader.token_store import InMemoryTokenStore

config_dir = sys.argv[1] if len(sys.argv) > 1 else None

try:
    config = load_config(config_dir)
except Exception as e:
    print('CONFIG ERROR:', e)
    sys.exit(2)

print(f'CLIENT_ID present: {bool(config.client_id)}')
print(f'CLIENT_SECRET present: {bool(config.client_secret)}')
print(f'Token URL: {config.token_url}')

try:
    # In-memory store: never touches the cached .creds file
    auth = SleepHQAuth(config, token_store=InMemoryTokenStore())
    token = auth.exchange_password()
    print('EXCHANGE_OK')
    print('expires_at:', datetime.fromtimestamp(token.expires_at, tz=timezone.utc).isoformat())
except Exception as e:
    print('EXCEPTION:', type(e), e)
    cause = e.__cause__
    resp = getattr(cause, 'response', None)
    if resp is not None:
        print('STATUS:', resp.status_code)
        print('BODY:', resp.text)
    else:
        print('No response attached to exception')
    sys.exit(8)
