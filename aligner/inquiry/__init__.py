"""Inquiry Agent.

Todo・マイルストーン・メモ・シグナルから、
ユーザーに投げかける追問を優先順に最大3件生成する。
"""

from aligner.inquiry.graph import build_inquiries, compile_graph, rank_inquiries
from aligner.inquiry.state import Inquiry, InquiryRequest

__all__ = [
    "Inquiry",
    "InquiryRequest",
    "build_inquiries",
    "compile_graph",
    "rank_inquiries",
]
