from medstats.exports.excel import build_workbook, excel_bytes, excel_filename, export_excel
from medstats.exports.word import build_word_report, export_word, word_bytes, word_filename

__all__ = [
    "build_workbook",
    "build_word_report",
    "excel_bytes",
    "excel_filename",
    "export_excel",
    "export_word",
    "word_bytes",
    "word_filename",
]
