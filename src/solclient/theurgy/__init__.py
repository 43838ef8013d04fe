"""
Theurgy - Command implementations for solclient.

- pipeline: connect, verify the program, get or create the instance
  account and send the counter instruction
"""
