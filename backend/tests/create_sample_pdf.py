import fitz

def create_sample_pdf(path: str):
    doc = fitz.open()

    # Page 1
    page1 = doc.new_page()
    page1.insert_text((50, 50), "Introduction to RAG", fontsize=20)
    page1.insert_text((50, 100), "This is a document about Retrieval Augmented Generation.", fontsize=12)
    page1.insert_text((50, 130), "Section 1: Architecture", fontsize=16)
    page1.insert_text((50, 160), "The architecture consists of an upload queue and a chat endpoint.", fontsize=12)

    # Page 2
    page2 = doc.new_page()
    page2.insert_text((50, 50), "Section 2: Benefits", fontsize=16)
    page2.insert_text((50, 80), "RAG reduces hallucinations by grounding the model in your own PDFs.", fontsize=12)
    page2.insert_text((50, 110), "Each user only ever chats with the documents they uploaded.", fontsize=12)

    doc.save(path)
    doc.close()

def create_blank_pdf(path: str):
    """A valid PDF whose only page carries no text."""
    doc = fitz.open()
    doc.new_page()
    doc.save(path)
    doc.close()

if __name__ == "__main__":
    create_sample_pdf("sample.pdf")
    print("Created sample.pdf")
