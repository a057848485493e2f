"""Vault Hygiene Meta information.
   Vault Hygiene keeps credentials under authenticated encryption
   and scores the hygiene of the stored credential set.
"""
__title__ = 'vault_hygiene'
__description__ = (
   'Local password vault with authenticated encryption '
   'and password hygiene analytics.'
)
__version__ = '0.3.0'
__copyright__ = 'Copyright (c) 2026 Vault Hygiene Developers'
__author__ = 'Vault Hygiene Developers'
__author_email__ = 'dev@vault-hygiene.org'
__license__ = 'Apache-2.0'
__url__ = 'https://github.com/vault-hygiene/vault-hygiene'
