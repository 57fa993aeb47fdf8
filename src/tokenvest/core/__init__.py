"""
tokenvest Core Module

Shared building blocks used by the vesting contracts and the CLI:
- Exception hierarchy
- Checked uint256 arithmetic
- Environment configuration
- Structured logging setup
"""

__all__ = []
