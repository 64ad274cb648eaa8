from .library import AssetLibrary, ImageAsset, LogoAsset, is_image_payload

__all__ = ["AssetLibrary", "ImageAsset", "LogoAsset", "is_image_payload"]
