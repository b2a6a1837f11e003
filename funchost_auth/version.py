"""FuncHost Auth Meta information.
   FuncHost Auth resolves the authorization level of requests made to a
   function host, and reads/writes its versioned secrets documents.
"""
__title__ = 'funchost_auth'
__description__ = (
   'Authorization-level resolution and versioned secrets storage '
   'for function hosts.'
)
__version__ = '0.3.0'
__copyright__ = 'Copyright (c) 2023 Jesus Lara'
__author__ = 'Jesus Lara'
__author_email__ = 'jesuslarag@gmail.com'
__license__ = 'Apache-2.0'
__url__ = 'https://github.com/phenobarbital/funchost-auth'
