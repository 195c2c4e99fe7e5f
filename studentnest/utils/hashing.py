"""
Hashing utilities for payment signature verification
"""

import hashlib
import hmac


class HMACHelper:
    """HMAC utilities for message authentication"""

    ALGORITHMS = {
        'sha1': hashlib.sha1,
        'sha256': hashlib.sha256,
        'sha512': hashlib.sha512,
    }

    @staticmethod
    def generate_hmac(message: str, secret_key: str, algorithm: str = 'sha256') -> str:
        """Generate HMAC for message"""
        if algorithm not in HMACHelper.ALGORITHMS:
            raise ValueError(f"Unsupported algorithm: {algorithm}")

        mac = hmac.new(
            secret_key.encode(),
            message.encode(),
            HMACHelper.ALGORITHMS[algorithm]
        )
        return mac.hexdigest()

    @staticmethod
    def verify_hmac(message: str, secret_key: str,
                    expected_hmac: str, algorithm: str = 'sha256') -> bool:
        """Verify HMAC in constant time; any input that is not the digest is a mismatch"""
        calculated_hmac = HMACHelper.generate_hmac(message, secret_key, algorithm)
        if not isinstance(expected_hmac, str):
            return False
        return hmac.compare_digest(calculated_hmac.encode(), expected_hmac.encode("utf-8", "surrogatepass"))

    @staticmethod
    def verify_payment_signature(order_id: str, payment_id: str,
                                 signature: str, secret: str) -> bool:
        """Razorpay checkout signature: HMAC-SHA256 over order_id|payment_id"""
        if not secret:
            return False
        return HMACHelper.verify_hmac(f"{order_id}|{payment_id}", secret, signature)
