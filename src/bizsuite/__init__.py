"""bizsuite package.

This package is organized by feature modules (leave, attendance, training,
support, quotations, ...) with model/repository/service layers and thin
MySQL adapters behind the repository protocols.
"""
