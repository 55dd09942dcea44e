"""
HTTP 接口测试
"""
import pytest

import main
from main import DOCX_MIME_TYPE
from mdword import md_parser
from mdword.errors import ConfigurationError


@pytest.mark.integration
class TestApi:
    """FastAPI 路由"""

    def test_read_root(self, client):
        """测试健康检查"""
        response = client.get("/")

        assert response.status_code == 200
        assert "message" in response.json()

    def test_generate_returns_attachment(self, client, open_docx):
        """测试生成接口返回 .docx 附件"""
        response = client.post("/generate", json={"markdown": "# T\n\n$E=mc^2$"})

        assert response.status_code == 200
        assert response.headers["content-type"] == DOCX_MIME_TYPE
        assert "documento.docx" in response.headers["content-disposition"]
        assert open_docx(response.content).paragraphs[0].text == "T"

    def test_generate_with_options(self, client):
        """测试带选项的请求"""
        payload = {"markdown": "a,b\n1,2", "origin": "chatgpt", "csv_tables": True, "clean_escapes": True}

        response = client.post("/generate", json=payload)

        assert response.status_code == 200

    def test_empty_markdown_rejected(self, client):
        """测试空内容返回 400"""
        response = client.post("/generate", json={"markdown": "  "})

        assert response.status_code == 400

    def test_invalid_origin_rejected(self, client):
        """测试未知来源返回 422"""
        response = client.post("/generate", json={"markdown": "# T", "origin": "claude"})

        assert response.status_code == 422

    def test_parse_failure_returns_422(self, client, monkeypatch):
        """测试解析失败返回 422 和错误信息"""
        def broken(markdown):
            raise RuntimeError("boom")

        monkeypatch.setattr(md_parser, "_markdown", broken)

        response = client.post("/generate", json={"markdown": "# T"})

        assert response.status_code == 422
        assert "boom" in response.json()["detail"]

    def test_other_conversion_error_returns_500(self, client, monkeypatch):
        """测试其他转换错误 (例如配置无效) 返回 500"""
        def broken(markdown, options=None, settings=None):
            raise ConfigurationError("bad config")

        monkeypatch.setattr(main, "markdown_to_docx", broken)

        response = client.post("/generate", json={"markdown": "# T"})

        assert response.status_code == 500
        assert "bad config" in response.json()["detail"]

    def test_deeply_nested_formula(self, client):
        """测试深度嵌套的公式仍然生成文档"""
        markdown = "$$\n" + "\\sqrt{" * 400 + "x" + "}" * 400 + "\n$$\n"

        response = client.post("/generate", json={"markdown": markdown})

        assert response.status_code == 200
