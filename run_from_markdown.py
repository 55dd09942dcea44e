# run_from_markdown.py
import logging

from mdword.app_logic import GenerationOptions, generate_document_from_markdown

# 定义输入和输出文件名
INPUT_MARKDOWN_FILE = 'data/input.md'
OUTPUT_DOCX_FILE = 'documento.docx'
# 'gemini' 或 'chatgpt'
ORIGIN = 'gemini'


def main():
    """
    从本地 Markdown 文件生成 Word 文档的主函数。
    """
    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    print(f"📄 正在从 '{INPUT_MARKDOWN_FILE}' 读取数据...")

    # 1. 读取 Markdown
    try:
        with open(INPUT_MARKDOWN_FILE, 'r', encoding='utf-8') as f:
            markdown = f.read()
        print("✅ 成功读取 Markdown 文件！")
    except (FileNotFoundError, UnicodeDecodeError) as e:
        print(f"错误：无法读取 Markdown 文件 -> {e}")
        return

    # 2. 调用核心引擎创建文档
    print("⚙️ 正在调用文档生成引擎...")
    docx_bytes, _ = generate_document_from_markdown(markdown, GenerationOptions(origin=ORIGIN), print)
    if docx_bytes is None:
        return

    # 3. 保存文档
    with open(OUTPUT_DOCX_FILE, 'wb') as f:
        f.write(docx_bytes)
    print(f"🎉 成功将文档保存为 '{OUTPUT_DOCX_FILE}'！")


if __name__ == "__main__":
    main()
