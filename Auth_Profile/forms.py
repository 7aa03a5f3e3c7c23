from django import forms


class RegisterForm(forms.Form):
    nama = forms.CharField(max_length=255)
    email = forms.EmailField(error_messages={'invalid': 'Invalid email address'})
    nomor_handphone = forms.CharField(max_length=20)
    password = forms.CharField(min_length=8, error_messages={
        'min_length': 'Password must be at least 8 characters',
    })
    password2 = forms.CharField()

    def clean_nomor_handphone(self):
        nomor = self.cleaned_data['nomor_handphone']
        if not nomor.replace('+', '').replace('-', '').isdigit():
            raise forms.ValidationError('Phone number may only contain digits')
        return nomor

    def clean(self):
        cleaned = super().clean()
        if cleaned.get('password') and cleaned.get('password') != cleaned.get('password2'):
            raise forms.ValidationError('Passwords do not match')
        return cleaned
