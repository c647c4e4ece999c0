"""Core domain package for feedsift.

Core contains rule matching, rule validation, and the entry processor without
any storage or I/O code, keeping the filtering logic portable.
"""
