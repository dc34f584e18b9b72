from abc import ABC, abstractmethod
from pathlib import Path


class Cipher(ABC):
    """
    Abstract base class for the encryption capability used by a journal.
    """

    name = "base"

    @abstractmethod
    def encrypt(self, plaintext_path: Path, encrypted_path: Path, recipient: str) -> None:
        """
        Encrypt a working copy for the recipient.

        Args:
            plaintext_path (Path): Decrypted file to seal.
            encrypted_path (Path): Destination; an existing file is overwritten.
            recipient (str): Identity read from the journal's .gpgid file.

        Raises:
            ExternalToolError: If the encryption fails.
        """
        pass

    @abstractmethod
    def decrypt(self, encrypted_path: Path, plaintext_path: Path, recipient: str) -> None:
        """
        Decrypt a sealed file into its working copy.

        Args:
            encrypted_path (Path): Ciphertext to open.
            plaintext_path (Path): Destination; an existing file is overwritten.
            recipient (str): Identity read from the journal's .gpgid file.

        Raises:
            ExternalToolError: If the decryption fails.
        """
        pass
