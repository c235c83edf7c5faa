from __future__ import annotations


class InvalidRecord(Exception):
    """交易记录缺失必要字段或字段不合法"""
