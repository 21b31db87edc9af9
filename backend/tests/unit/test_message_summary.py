"""
Tests for conversation preview derivation.

Covers:
- Body wins over attachments
- Bracket labels per attachment type, with filename or label fallback
- "+N more" suffix
- Tolerance for records missing optional fields
- Length cap
"""

from types import SimpleNamespace

from app.domain.message_summary import attachment_label, summarize, summarize_attachments


class TestSummarizeBody:
    def test_body_wins_over_attachments(self):
        assert summarize("hello world", [{"fileType": "image", "originalName": "cat.png"}]) == (
            "hello world"
        )

    def test_body_is_trimmed(self):
        assert summarize("   hi there  \n") == "hi there"

    def test_body_is_capped(self):
        assert summarize("x" * 50, max_length=10) == "x" * 10

    def test_empty_body_and_no_attachments_is_empty(self):
        assert summarize("", []) == ""
        assert summarize(None, None) == ""
        assert summarize("   ", []) == ""


class TestSummarizeAttachments:
    def test_single_image_with_name(self):
        assert summarize("", [{"fileType": "image", "originalName": "cat.png"}]) == "[Image] cat.png"

    def test_multiple_attachments_without_names(self):
        result = summarize("", [{"fileType": "image"}, {"fileType": "video"}])
        assert result == "[Image] Image (+1 more)"

    def test_more_count_uses_remaining_attachments(self):
        attachments = [{"file_type": "document", "original_name": "po.pdf"}] + [{}] * 3
        assert summarize_attachments(attachments) == "[Document] po.pdf (+3 more)"

    def test_snake_case_keys_are_accepted(self):
        assert summarize("", [{"file_type": "audio", "original_name": "note.m4a"}]) == (
            "[Audio] note.m4a"
        )

    def test_orm_like_objects_are_accepted(self):
        row = SimpleNamespace(file_type="video", original_name="sample.mp4", mime_type="video/mp4")
        assert summarize("", [row]) == "[Video] sample.mp4"

    def test_missing_fields_fall_back_to_attachment_label(self):
        assert summarize("", [{}]) == "[Attachment] Attachment"

    def test_summary_is_capped(self):
        result = summarize("", [{"fileType": "image", "originalName": "a" * 100}], max_length=20)
        assert len(result) == 20
        assert result.startswith("[Image] ")


class TestAttachmentLabel:
    def test_known_types(self):
        assert attachment_label({"fileType": "image"}) == "Image"
        assert attachment_label({"fileType": "video"}) == "Video"
        assert attachment_label({"fileType": "audio"}) == "Audio"
        assert attachment_label({"fileType": "document"}) == "Document"

    def test_type_is_case_insensitive(self):
        assert attachment_label({"fileType": "IMAGE"}) == "Image"

    def test_mime_prefix_used_when_type_missing(self):
        assert attachment_label({"mimeType": "image/png"}) == "Image"
        assert attachment_label({"mime_type": "application/pdf"}) == "File"

    def test_unknown_type_is_capitalized(self):
        assert attachment_label({"fileType": "model"}) == "Model"

    def test_blank_type_is_attachment(self):
        assert attachment_label({"fileType": "  "}) == "Attachment"
