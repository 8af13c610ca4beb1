from abc import ABC, abstractmethod


class PaymentProvider(ABC):
    @abstractmethod
    def initiate(self, phone, amount, reference):
        raise NotImplementedError

    @abstractmethod
    def query(self, reference):
        raise NotImplementedError
