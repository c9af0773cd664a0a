"""
Azure Cmdlets

Command-line tools wrapping Azure management APIs: Recovery Services vault
settings file generation and virtual network gateway connection settings.
"""
