# main.py
import logging
from typing import Literal

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from pydantic import BaseModel

from mdword.app_logic import GenerationOptions, markdown_to_docx
from mdword.config import get_settings
from mdword.errors import DocumentRenderError, MarkdownParseError, MdwordError

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

DOCX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


class GenerateRequest(BaseModel):
    markdown: str
    origin: Literal['gemini', 'chatgpt'] = 'gemini'
    csv_tables: bool = False
    clean_escapes: bool = False


app = FastAPI(
    title="Markdown 转 Word API",
    description="把 AI 助手输出的 Markdown + LaTeX 转换为带原生公式的 Word 文档",
    version="1.0.0",
)

origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
def read_root():
    """
    根路径，用于检查API服务是否正常运行。

    Returns:
        dict: 包含欢迎信息的字典。
    """
    return {"message": "Markdown 转 Word API 运行正常！"}


@app.post("/generate")
def generate_endpoint(request: GenerateRequest):
    """
    接收 Markdown 文本，返回生成的 .docx 文件 (附件形式下载)。

    Raises:
        HTTPException: 输入为空 (400)、Markdown 无法解析 (422)，或文档序列化失败与其他转换错误 (500)。
    """
    if not request.markdown.strip():
        raise HTTPException(status_code=400, detail="Markdown 内容不能为空。")

    options = GenerationOptions(origin=request.origin, csv_tables=request.csv_tables,
                                clean_escapes=request.clean_escapes)
    try:
        docx_bytes = markdown_to_docx(request.markdown, options)
    except MarkdownParseError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except DocumentRenderError as e:
        logger.exception("文档生成失败")
        raise HTTPException(status_code=500, detail=f"文档生成失败: {e}")
    except MdwordError as e:
        logger.exception("文档转换出错")
        raise HTTPException(status_code=500, detail=f"文档转换出错: {e}")

    filename = get_settings().output_filename
    return Response(
        content=docx_bytes,
        media_type=DOCX_MIME_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="127.0.0.1", port=8000)
