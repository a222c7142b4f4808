import os

os.environ.setdefault("TENANT_ID", "11111111-2222-3333-4444-555555555555")
os.environ.setdefault("CLIENT_ID", "66666666-7777-8888-9999-000000000000")
os.environ.setdefault("CLIENT_SECRET", "not-a-real-secret")
os.environ["FUNCTION_KEY"] = "test-function-key"
os.environ["QUERY_RETRY_DELAY"] = "0"
