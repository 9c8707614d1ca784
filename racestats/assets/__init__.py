from .publisher import AssetPublisher

__all__ = ['AssetPublisher']
