"""语言与图标解析模块。

根据文件扩展名查找编辑器语言 ID 和图标，纯查表，未知扩展名不报错。
"""

EDITOR_LANGUAGES = {
    ".ts": "typescript",
    ".js": "javascript",
    ".css": "css",
    ".less": "less",
    ".scss": "scss",
    ".json": "json",
    ".html": "html",
    ".xml": "xml",
    ".php": "php",
    ".cs": "csharp",
    ".cpp": "cpp",
    ".c": "cpp",
    ".h": "cpp",
    ".razor": "razor",
    ".md": "markdown",
    ".diff": "diff",
    ".java": "java",
    ".vb": "vb",
    ".coffee": "coffeescript",
    ".handlebars": "handlebars",
    ".bat": "bat",
    ".pug": "pug",
    ".fs": "fsharp",
    ".lua": "lua",
    ".ps1": "powershell",
    ".py": "python",
    ".rb": "ruby",
    ".sass": "sass",
    ".r": "r",
    ".m": "objective-c",
    ".str": "strata",
}

FILE_ICONS = {
    ".js": "nf nf-dev-javascript",
    ".ts": "nf nf-dev-typescript",
    ".py": "nf nf-dev-python",
    ".html": "nf nf-dev-html5",
    ".css": "nf nf-dev-css3",
    ".json": "nf nf-mdi-json",
    ".md": "nf nf-oct-markdown",
    ".str": "nf nf-mdi-language",
    ".cpp": "nf nf-dev-cplusplus",
    ".c": "nf nf-dev-cplusplus",
    ".h": "nf nf-dev-cplusplus",
    ".cs": "nf nf-dev-csharp",
    ".java": "nf nf-dev-java",
    ".rb": "nf nf-dev-ruby",
    ".php": "nf nf-dev-php",
    ".lua": "nf nf-dev-lua",
    ".bat": "nf nf-mdi-console",
    ".ps1": "nf nf-mdi-terminal",
    ".pug": "nf nf-dev-pug",
    ".sass": "nf nf-dev-sass",
    ".r": "nf nf-dev-r",
    ".m": "nf nf-dev-apple",
}

PLAIN_TEXT = "plaintext"
DEFAULT_ICON = "bi bi-file-earmark"
STRATA_LANGUAGE = "strata"


def file_extension(file_name: str) -> str:
    """返回小写扩展名（含点），无扩展名返回 ""。"""
    dot = file_name.rfind(".")
    if dot <= 0:
        return ""
    return file_name[dot:].lower()


def resolve_language(file_name: str) -> str:
    """文件名 -> 编辑器语言 ID（未知为 plaintext）。"""
    return EDITOR_LANGUAGES.get(file_extension(file_name), PLAIN_TEXT)


def resolve_icon(file_name: str) -> str:
    """文件名 -> 图标 class（未知为通用文件图标）。"""
    return FILE_ICONS.get(file_extension(file_name), DEFAULT_ICON)


def is_strata_file(file_name: str) -> bool:
    return resolve_language(file_name) == STRATA_LANGUAGE
