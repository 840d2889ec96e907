# EASY/easy/setups/__init__.py

"""
Setup scripts bundled with EASY. Each *_setup.py module runs as its own
process (python <file>) and reports success through its exit status.
"""
