from keys.codec import KeyCodec
from keys.domain import ApiKey, ErrorKind, OperationError
from keys.repository import KeyRepository
from keys.store import KeyStore, KeyStoreError, SqlKeyStore
from keys.usage import ThresholdState, threshold_state, usage_percentage

__all__ = ['ApiKey', 'ErrorKind', 'KeyCodec', 'KeyRepository', 'KeyStore',
           'KeyStoreError', 'OperationError', 'SqlKeyStore', 'ThresholdState',
           'threshold_state', 'usage_percentage']
