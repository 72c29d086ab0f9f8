from .seed import sample_products, sample_users

__all__ = ['sample_products', 'sample_users']
