"""
pytest配置文件 - 全局fixtures
"""
import io

import pytest
from docx import Document
from fastapi.testclient import TestClient

from main import app
from mdword.config import Settings


@pytest.fixture
def settings() -> Settings:
    """默认版式配置 (不读取 config.yaml)"""
    return Settings()


@pytest.fixture
def client() -> TestClient:
    """测试客户端"""
    return TestClient(app)


@pytest.fixture
def open_docx():
    """把 .docx 字节流重新打开为 python-docx 文档"""
    def _open(docx_bytes: bytes):
        return Document(io.BytesIO(docx_bytes))
    return _open
