from pydantic import BaseModel


class Address(BaseModel):
    """Shipping address embedded in users and orders. Has no identity of its own."""

    name: str = ""
    phone: str = ""
    unit_number: str = ""
    address_line1: str = ""
    address_line2: str = ""
    landmark: str = ""
    city: str = ""
    state: str = ""
    pincode: str = ""
    country: str = "India"

    def is_valid(self) -> bool:
        return (
            bool(self.phone.strip())
            and bool(self.address_line1.strip())
            and bool(self.city.strip())
            and bool(self.state.strip())
            and len(self.pincode.strip()) >= 4
        )

    def to_formatted_string(self, name: str | None = None) -> str:
        """Multi-line block for labels; blank optional fields produce no line."""
        display_name = name if name is not None else self.name
        lines = []
        if display_name.strip():
            lines.append(display_name.strip())
        if self.unit_number.strip():
            lines.append(self.unit_number.strip())
        lines.append(self.address_line1.strip())
        if self.address_line2.strip():
            lines.append(self.address_line2.strip())
        if self.landmark.strip():
            lines.append(f"Near: {self.landmark.strip()}")
        lines.append(f"{self.city.strip()}, {self.state.strip()} - {self.pincode.strip()}")
        if self.country.strip():
            lines.append(self.country.strip())
        lines.append(f"Phone: {self.phone.strip()}")
        return "\n".join(lines)
