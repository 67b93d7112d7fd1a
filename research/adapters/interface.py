from abc import ABC, abstractmethod
from typing import List, Dict, Any


class GeneratorAdapter(ABC):
    @abstractmethod
    def generate(self, messages: List[Dict[str, Any]], **kwargs) -> str:
        raise NotImplementedError

    @abstractmethod
    def get_model_info(self) -> Dict[str, Any]:
        raise NotImplementedError
