"""
tokenvest command-line interface.
"""
