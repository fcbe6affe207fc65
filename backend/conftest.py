import os
import sys
import tempfile
from pathlib import Path

ROOT = Path(__file__).resolve().parent
sys.path.append(str(ROOT))

# 导入应用之前先设置测试配置
_TEST_DIR = tempfile.mkdtemp(prefix="yarnstock-test-")
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["SQLITE_DATABASE_URI"] = f"sqlite:///{_TEST_DIR}/unused.db"
os.environ["LOG_DIR"] = f"{_TEST_DIR}/logs"
os.environ["DEFAULT_USER_EMAIL"] = "owner@example.com"
os.environ["BASE_URL"] = "http://testserver"
os.environ.pop("SMTP_HOST", None)
