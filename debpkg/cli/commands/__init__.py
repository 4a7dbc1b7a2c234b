"""CLI 子命令"""
