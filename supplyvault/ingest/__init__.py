from supplyvault.ingest.s3 import AttachmentStore
from supplyvault.ingest.service import AttachmentIngester, AttachmentResult, InboundAttachment

__all__ = ["AttachmentIngester", "AttachmentResult", "AttachmentStore", "InboundAttachment"]
